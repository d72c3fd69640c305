"""Webhook ingestion errors."""

from __future__ import annotations


class WebhookError(ValueError):
    """Base class for errors raised while ingesting a webhook delivery."""


class PayloadTooLargeError(WebhookError):
    """Raised when a request body exceeds the configured ceiling."""

    def __init__(self, limit: int) -> None:
        """Initialise with the byte limit that was exceeded."""
        self.limit = limit
        super().__init__(f"Payload too large (limit {limit} bytes)")


class UnsupportedMediaTypeError(WebhookError):
    """Raised when a delivery uses a content kind that is not accepted."""

    @classmethod
    def form_disabled(cls) -> UnsupportedMediaTypeError:
        """Return an error for form-encoded deliveries in hardened mode."""
        return cls("Form-encoded webhook payloads are not accepted")


class MalformedPayloadError(WebhookError):
    """Raised when a payload cannot be decoded or lacks required fields."""

    @classmethod
    def invalid_json(cls, detail: object) -> MalformedPayloadError:
        """Return an error for a body that is not valid JSON."""
        return cls(f"Invalid JSON payload: {detail}")

    @classmethod
    def missing_form_field(cls, field: str) -> MalformedPayloadError:
        """Return an error for a form body without the payload field."""
        return cls(f"Form payload missing field: {field}")

    @classmethod
    def invalid_shape(cls, event_type: str, detail: object) -> MalformedPayloadError:
        """Return an error for a payload missing fields the event requires."""
        return cls(f"Malformed {event_type!r} payload: {detail}")

    @classmethod
    def missing_owner(cls) -> MalformedPayloadError:
        """Return an error when no owner identifier can be resolved."""
        return cls("Repository owner has no usable identifier")
