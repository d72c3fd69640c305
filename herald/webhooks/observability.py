"""Structured log events for the webhook ingestion pipeline.

Events up to the 202 commitment describe what the client saw; everything
after it is purely observational and never changes the HTTP response.
"""

from __future__ import annotations

import enum
import typing as typ

from herald.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from herald.routing import PublishResult, SubscriberFailure

    from .models import WebhookDelivery

logger = get_logger(__name__)


class WebhookEventType(enum.StrEnum):
    """Structured log event types for webhook ingestion."""

    DELIVERY_ACCEPTED = "webhook.delivery.accepted"
    DELIVERY_REJECTED = "webhook.delivery.rejected"
    SIGNATURE_INVALID = "webhook.signature.invalid"
    PING_IGNORED = "webhook.ping.ignored"
    PAYLOAD_MALFORMED = "webhook.payload.malformed"
    EVENT_DISPATCHED = "webhook.event.dispatched"
    SUBSCRIBER_FAILED = "webhook.subscriber.failed"


class WebhookEventLogger:
    """Emit structured webhook events via femtologging."""

    def log_delivery_accepted(self, delivery: WebhookDelivery) -> None:
        """Log a delivery that was decoded and answered with 202."""
        log_info(
            logger,
            "[%s] event_type=%s delivery_id=%s content_kind=%s body_bytes=%d",
            WebhookEventType.DELIVERY_ACCEPTED,
            delivery.event_type or "-",
            delivery.delivery_id or "-",
            delivery.content_kind,
            len(delivery.body),
        )

    def log_delivery_rejected(self, status: int, error: BaseException) -> None:
        """Log a delivery refused before the 202 commitment."""
        log_warning(
            logger,
            "[%s] status=%d error_type=%s error_message=%s",
            WebhookEventType.DELIVERY_REJECTED,
            status,
            type(error).__name__,
            str(error),
        )

    def log_signature_invalid(self, delivery: WebhookDelivery) -> None:
        """Log a delivery dropped for a missing or wrong signature."""
        log_warning(
            logger,
            "[%s] event_type=%s delivery_id=%s",
            WebhookEventType.SIGNATURE_INVALID,
            delivery.event_type or "-",
            delivery.delivery_id or "-",
        )

    def log_ping_ignored(self, delivery: WebhookDelivery) -> None:
        """Log a registration ping that was not routed."""
        log_info(
            logger,
            "[%s] delivery_id=%s",
            WebhookEventType.PING_IGNORED,
            delivery.delivery_id or "-",
        )

    def log_payload_malformed(self, event_type: str, error: BaseException) -> None:
        """Log a payload that could not be normalized after acceptance."""
        log_error(
            logger,
            "[%s] event_type=%s error_message=%s",
            WebhookEventType.PAYLOAD_MALFORMED,
            event_type or "-",
            str(error),
        )

    def log_event_dispatched(self, result: PublishResult) -> None:
        """Log a routed event with the number of matching subscriptions."""
        log_info(
            logger,
            "[%s] topic=%s matched=%d delivered=%d failed=%d",
            WebhookEventType.EVENT_DISPATCHED,
            result.topic,
            result.matched,
            result.delivered,
            len(result.failures),
        )

    def log_subscriber_failed(self, failure: SubscriberFailure) -> None:
        """Log a subscriber callback that raised."""
        log_error(
            logger,
            "[%s] pattern=%s error_type=%s error_message=%s",
            WebhookEventType.SUBSCRIBER_FAILED,
            failure.subscription.pattern,
            type(failure.error).__name__,
            str(failure.error),
            exc_info=failure.error,
        )
