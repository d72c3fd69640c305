"""Herald runtime entrypoint.

This module provides the ASGI application factory used by Granian
(``herald.runtime:create_app``) and :func:`main`, which starts the server.

Configuration is driven by environment variables (see
:meth:`herald.config.HeraldConfig.from_env`):

- ``HERALD_HOST``: Bind address (default ``0.0.0.0``)
- ``HERALD_PORT``: Listen port (default ``3333``)
- ``HERALD_LOG_LEVEL``: Log level (default ``INFO``)
- ``HERALD_SCRIPT_DIRECTORY``: Subscriber directory (default ``notifier.d``)
- ``HERALD_WEBHOOK_SECRET``: Shared webhook secret (empty disables checks)

Run the service directly with ``python -m herald.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from herald.config import HeraldConfig
from herald.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main", "serve"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535

# Script queues live in process memory; more workers would run one script
# concurrently from separate processes.
_WORKERS = 1


def _validate_port(port: int) -> int:
    """Return ``port`` if it is a valid TCP port.

    Raises
    ------
    SystemExit
        If port is outside 1-65535.

    """
    if not (_MIN_PORT <= port <= _MAX_PORT):
        log_error(
            logger,
            "Invalid HERALD_PORT value: %d (must be %d-%d)",
            port,
            _MIN_PORT,
            _MAX_PORT,
        )
        raise SystemExit(1)
    return port


def _load_config() -> HeraldConfig:
    try:
        return HeraldConfig.from_env()
    except ValueError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment.

    Returns
    -------
    falcon.asgi.App
        Application with every subscriber in the script directory loaded.

    """
    from herald.api.factory import build_app

    return build_app(_load_config())


def serve(config: HeraldConfig) -> None:
    """Configure logging and run Granian for ``config``.

    The Granian worker rebuilds the app from the environment, so the
    configuration is exported before the server starts.
    """
    from granian import Granian
    from granian.constants import Interfaces

    port = _validate_port(config.port)
    normalized_level, invalid_level = configure_logging(
        config.log_level, debug=config.debug
    )
    if invalid_level:
        log_warning(
            logger,
            "Invalid HERALD_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    os.environ.update(config.to_env())
    log_info(
        logger,
        "Starting Herald on %s:%d (log_level=%s, authentication=%s)",
        config.host,
        port,
        normalized_level,
        "enabled" if config.authentication_enabled else "disabled",
    )

    server = Granian(
        "herald.runtime:create_app",
        address=config.host,
        port=port,
        interface=Interfaces.ASGI,
        workers=_WORKERS,
        factory=True,
    )
    server.serve()


def main() -> None:
    """Start the Herald server using configuration from the environment."""
    serve(_load_config())


if __name__ == "__main__":
    main()
