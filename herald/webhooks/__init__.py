"""Webhook ingestion: authentication, normalization and dispatch."""

from __future__ import annotations

from .errors import (
    MalformedPayloadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    WebhookError,
)
from .models import NormalizedEvent, WebhookDelivery
from .normalize import EventNormalizer, NormalizerConfig
from .notifier import WebhookNotifier
from .observability import WebhookEventLogger, WebhookEventType
from .signature import compute_signature, verify_signature

__all__ = [
    "EventNormalizer",
    "MalformedPayloadError",
    "NormalizedEvent",
    "NormalizerConfig",
    "PayloadTooLargeError",
    "UnsupportedMediaTypeError",
    "WebhookDelivery",
    "WebhookError",
    "WebhookEventLogger",
    "WebhookEventType",
    "WebhookNotifier",
    "compute_signature",
    "verify_signature",
]
