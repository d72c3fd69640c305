"""Drive an accepted delivery through verification, normalization and routing.

:meth:`WebhookNotifier.process` runs after the HTTP response has been sent.
Nothing it does can reach the client: invalid signatures are dropped
silently and malformed payloads are only logged and reported to error
listeners.

Usage
-----
Wire a notifier and subscribe to branch pushes::

    router = TopicRouter()
    notifier = WebhookNotifier(router, config=HeraldConfig(webhook_secret="s3cret"))
    notifier.subscribe("example/test/push/heads/*", handle_push)

"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from herald.config import HeraldConfig
from herald.logging import get_logger, log_exception

from .errors import MalformedPayloadError
from .models import PING_EVENT
from .normalize import EventNormalizer
from .observability import WebhookEventLogger
from .signature import SIGNATURE_HEADER, verify_signature

if typ.TYPE_CHECKING:
    from herald.routing import PublishResult, Subscription, TopicRouter
    from herald.routing.router import SubscriberCallback
    from herald.routing.topics import TopicPattern

    from .models import WebhookDelivery

type ErrorListener = cabc.Callable[[BaseException], object]

logger = get_logger(__name__)


class WebhookNotifier:
    """Authenticate, normalize and publish webhook deliveries.

    Parameters
    ----------
    router
        Router that owns the subscriptions events are published to.
    config
        Deployment configuration; only the webhook secret is used here.
    normalizer
        Event normalizer. Defaults to :class:`EventNormalizer`.
    event_logger
        Structured event logger. Defaults to :class:`WebhookEventLogger`.

    """

    def __init__(
        self,
        router: TopicRouter,
        *,
        config: HeraldConfig | None = None,
        normalizer: EventNormalizer | None = None,
        event_logger: WebhookEventLogger | None = None,
    ) -> None:
        """Initialise the notifier with its collaborators."""
        self._router = router
        self._secret = (config or HeraldConfig()).webhook_secret
        self._normalizer = normalizer or EventNormalizer()
        self._event_logger = event_logger or WebhookEventLogger()
        self._error_listeners: list[ErrorListener] = []

    @property
    def event_logger(self) -> WebhookEventLogger:
        """Return the structured event logger shared with the listener."""
        return self._event_logger

    def subscribe(
        self,
        pattern: str | TopicPattern,
        callback: SubscriberCallback,
    ) -> Subscription:
        """Register ``callback`` for events whose topic matches ``pattern``."""
        return self._router.subscribe(pattern, callback)

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register a callable notified of ingestion errors."""
        self._error_listeners.append(listener)

    def report_error(self, error: BaseException) -> None:
        """Forward ``error`` to every error listener.

        A listener that raises is logged and does not stop the others.
        """
        for listener in self._error_listeners:
            try:
                listener(error)
            except Exception as exc:  # noqa: BLE001 - listeners are observers
                log_exception(logger, "Webhook error listener failed", exc)

    def process(self, delivery: WebhookDelivery) -> PublishResult | None:
        """Route one accepted delivery to matching subscribers.

        Returns
        -------
        PublishResult | None
            The routing outcome, or ``None`` when the delivery was dropped
            (bad signature, ping, or malformed payload).

        """
        if not verify_signature(
            self._secret, delivery.body, delivery.header(SIGNATURE_HEADER)
        ):
            self._event_logger.log_signature_invalid(delivery)
            return None

        event_type = delivery.event_type
        if event_type == PING_EVENT:
            self._event_logger.log_ping_ignored(delivery)
            return None

        try:
            event = self._normalizer.normalize(event_type, delivery.data)
        except MalformedPayloadError as exc:
            self._event_logger.log_payload_malformed(event_type, exc)
            self.report_error(exc)
            return None

        result = self._router.publish(event.topic, event)
        self._event_logger.log_event_dispatched(result)
        for failure in result.failures:
            self._event_logger.log_subscriber_failed(failure)
            self.report_error(failure.error)
        return result


__all__ = ["ErrorListener", "WebhookNotifier"]
