"""Subscriber module discovery and loading."""

from __future__ import annotations

from .errors import SubscriberLoadError
from .loader import discover_subscribers, load_subscriber, load_subscribers, script_for

__all__ = [
    "SubscriberLoadError",
    "discover_subscribers",
    "load_subscriber",
    "load_subscribers",
    "script_for",
]
