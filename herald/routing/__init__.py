"""Hierarchical topic routing."""

from __future__ import annotations

from .router import (
    PublishResult,
    RouterSealedError,
    SubscriberFailure,
    Subscription,
    TopicRouter,
)
from .topics import Topic, TopicPattern, TopicPatternError, match_segments

__all__ = [
    "PublishResult",
    "RouterSealedError",
    "SubscriberFailure",
    "Subscription",
    "Topic",
    "TopicPattern",
    "TopicPatternError",
    "TopicRouter",
    "match_segments",
]
