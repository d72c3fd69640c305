"""Wire Herald's components from configuration.

Usage
-----
Build a fully loaded application::

    from herald.api.factory import build_app

    app = build_app(HeraldConfig.from_env())

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from herald.execution import ScriptQueueRegistry
from herald.routing import TopicRouter
from herald.subscribers import load_subscribers
from herald.webhooks import WebhookNotifier

from .app import AppDependencies, create_app

if typ.TYPE_CHECKING:
    import falcon.asgi

    from herald.config import HeraldConfig

__all__ = ["Components", "build_app", "build_components"]


@dc.dataclass(frozen=True, slots=True)
class Components:
    """Core components built for one process."""

    router: TopicRouter
    notifier: WebhookNotifier
    registry: ScriptQueueRegistry


def build_components(config: HeraldConfig, *, load: bool = True) -> Components:
    """Build the router, notifier and registry and load subscribers.

    Subscriber modules are loaded from ``config.script_directory`` when
    ``load`` is true; the router is sealed afterwards either way.
    """
    router = TopicRouter()
    notifier = WebhookNotifier(router, config=config)
    registry = ScriptQueueRegistry()
    if load:
        load_subscribers(config.script_directory, notifier, registry)
    router.seal()
    return Components(router=router, notifier=notifier, registry=registry)


def build_app(config: HeraldConfig) -> falcon.asgi.App:
    """Return the ASGI application for ``config``."""
    components = build_components(config)
    return create_app(
        AppDependencies(
            notifier=components.notifier,
            registry=components.registry,
            config=config,
        )
    )
