"""Load subscriber modules from a directory.

Every ``*.py`` file in the directory is a subscriber. It is imported by path
and its ``subscribe(notifier, exec_handle)`` function is called once at
startup. ``exec_handle`` runs the sibling script with the same stem and a
``.sh`` suffix, so ``deploy.py`` drives ``deploy.sh``::

    # notifier.d/deploy.py
    def subscribe(notifier, exec_handle):
        notifier.subscribe("example/site/push/heads/main", exec_handle)

"""

from __future__ import annotations

import importlib.util
import typing as typ

from herald.logging import get_logger, log_info

from .errors import SubscriberLoadError

if typ.TYPE_CHECKING:
    import types
    from pathlib import Path

    from herald.execution import ScriptQueueRegistry
    from herald.webhooks import WebhookNotifier

logger = get_logger(__name__)

SUBSCRIBER_SUFFIX = ".py"
SCRIPT_SUFFIX = ".sh"
ENTRYPOINT = "subscribe"
_MODULE_NAMESPACE = "herald_subscribers"


def discover_subscribers(directory: Path) -> list[Path]:
    """Return subscriber module paths in ``directory`` sorted by name."""
    if not directory.is_dir():
        raise SubscriberLoadError.missing_directory(directory)
    return sorted(
        path
        for path in directory.iterdir()
        if path.suffix == SUBSCRIBER_SUFFIX and path.is_file()
    )


def script_for(module_path: Path) -> Path:
    """Return the script paired with a subscriber module."""
    return module_path.with_suffix(SCRIPT_SUFFIX)


def _import_module(path: Path) -> types.ModuleType:
    spec = importlib.util.spec_from_file_location(
        f"{_MODULE_NAMESPACE}.{path.stem}", path
    )
    if spec is None or spec.loader is None:
        raise SubscriberLoadError.not_importable(path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def load_subscriber(
    path: Path,
    notifier: WebhookNotifier,
    registry: ScriptQueueRegistry,
) -> None:
    """Import one subscriber module and let it register its subscriptions."""
    module = _import_module(path)
    entrypoint = getattr(module, ENTRYPOINT, None)
    if not callable(entrypoint):
        raise SubscriberLoadError.missing_entrypoint(path)
    entrypoint(notifier, registry.handle_for(script_for(path)))


def load_subscribers(
    directory: Path,
    notifier: WebhookNotifier,
    registry: ScriptQueueRegistry,
) -> list[Path]:
    """Load every subscriber module in ``directory``.

    Returns
    -------
    list[Path]
        The loaded module paths in load order.

    Raises
    ------
    SubscriberLoadError
        If the directory is missing or a module lacks ``subscribe``.

    """
    loaded: list[Path] = []
    for path in discover_subscribers(directory):
        log_info(logger, "Including %s", path)
        load_subscriber(path, notifier, registry)
        loaded.append(path)
    return loaded
