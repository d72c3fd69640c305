"""Lifespan middleware that drains script queues on shutdown.

Falcon calls ``process_shutdown`` when the ASGI server stops. Queued jobs
get a grace period to finish; whatever is still running afterwards is
terminated so the worker can exit.

Usage
-----
Register the middleware when creating the Falcon app::

    app = falcon.asgi.App(middleware=[QueueLifespanMiddleware(registry)])

"""

from __future__ import annotations

import asyncio
import typing as typ

from herald.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from herald.execution import ScriptQueueRegistry

__all__ = ["DEFAULT_SHUTDOWN_GRACE_SECONDS", "QueueLifespanMiddleware"]

logger = get_logger(__name__)

DEFAULT_SHUTDOWN_GRACE_SECONDS = 30.0


class QueueLifespanMiddleware:
    """Falcon middleware tying script queues to the ASGI lifespan.

    Parameters
    ----------
    registry
        Registry owning every script queue.
    grace_period
        Seconds to wait for queued jobs before terminating them.

    """

    def __init__(
        self,
        registry: ScriptQueueRegistry,
        *,
        grace_period: float = DEFAULT_SHUTDOWN_GRACE_SECONDS,
    ) -> None:
        """Initialise the middleware with the queue registry."""
        self._registry = registry
        self._grace_period = grace_period

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Log the scripts that have queues at startup."""
        log_info(logger, "Serving %d script queue(s)", len(self._registry))

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Wait for queued jobs up to the grace period, then stop queues."""
        try:
            await asyncio.wait_for(self._registry.wait_idle(), self._grace_period)
        except TimeoutError:
            log_warning(
                logger,
                "Script queues still busy after %.1fs; terminating",
                self._grace_period,
            )
        await self._registry.aclose()
