"""Application factory for the Herald Falcon ASGI application.

Usage
-----
Build an app from pre-wired collaborators::

    from herald.api.app import AppDependencies, create_app

    deps = AppDependencies(notifier=notifier, registry=registry, config=config)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from herald.api.errors import register_error_handlers
from herald.api.middleware import QueueLifespanMiddleware
from herald.api.resources import WebhookListener
from herald.config import HeraldConfig

if typ.TYPE_CHECKING:
    from herald.execution import ScriptQueueRegistry
    from herald.webhooks import WebhookNotifier

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    notifier
        Pipeline that receives accepted deliveries.
    registry
        Script queues drained on shutdown. Optional for apps that never
        run scripts.
    config
        Deployment configuration for the listener.

    """

    notifier: WebhookNotifier
    registry: ScriptQueueRegistry | None = None
    config: HeraldConfig = dc.field(default_factory=HeraldConfig)


def create_app(dependencies: AppDependencies) -> falcon.asgi.App:
    """Create the Falcon ASGI application.

    Every path is served by one :class:`WebhookListener` sink; the
    pre-acceptance error handlers map rejections to empty 4xx responses.

    Parameters
    ----------
    dependencies
        Collaborators wired by :mod:`herald.api.factory` or by tests.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    if dependencies.registry is not None:
        middleware.append(QueueLifespanMiddleware(dependencies.registry))

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    listener = WebhookListener(dependencies.notifier, config=dependencies.config)
    app.add_sink(listener.handle, prefix="/")

    register_error_handlers(app)
    return app
