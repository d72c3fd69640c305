"""Hierarchical topic names and wildcard patterns.

Topics are ``/``-delimited segment sequences such as
``example/test/push/heads/main``. Patterns use the same syntax, where a
``*`` segment matches exactly one topic segment and a terminal ``**``
segment matches every remaining segment, including none.

Examples
--------
>>> pattern = TopicPattern.parse("example/test/push/heads/*")
>>> pattern.matches(Topic.parse("example/test/push/heads/main"))
True
>>> pattern.matches(Topic.parse("example/test/push/tags/v1"))
False
>>> TopicPattern.parse("example/**").matches(Topic.parse("example"))
True

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses

DELIMITER = "/"
SINGLE_WILDCARD = "*"
MULTI_WILDCARD = "**"


class TopicPatternError(ValueError):
    """Raised when a subscription pattern cannot be parsed."""

    @classmethod
    def empty(cls) -> TopicPatternError:
        """Return an error for an empty pattern."""
        return cls("topic pattern must not be empty")

    @classmethod
    def misplaced_multi_wildcard(cls, pattern: str) -> TopicPatternError:
        """Return an error for ``**`` outside the terminal position."""
        return cls(
            f"{MULTI_WILDCARD!r} is only allowed as the last segment: {pattern!r}"
        )


def split_segments(text: str) -> tuple[str, ...]:
    """Split ``text`` on the topic delimiter."""
    return tuple(text.split(DELIMITER))


@dataclasses.dataclass(frozen=True, slots=True)
class Topic:
    """Concrete routing address of one event."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> Topic:
        """Build a topic from its delimited string form."""
        return cls(split_segments(text))

    def __str__(self) -> str:
        """Return the delimited string form."""
        return DELIMITER.join(self.segments)


def match_segments(
    pattern: cabc.Sequence[str],
    topic: cabc.Sequence[str],
) -> bool:
    """Return whether pattern segments match topic segments.

    Segments are compared pairwise. ``*`` accepts any single segment and a
    ``**`` ends the match successfully however many topic segments remain.
    Without wildcards only an identical topic matches.
    """
    for index, segment in enumerate(pattern):
        if segment == MULTI_WILDCARD:
            return True
        if index >= len(topic):
            return False
        if segment != SINGLE_WILDCARD and segment != topic[index]:
            return False
    return len(pattern) == len(topic)


@dataclasses.dataclass(frozen=True, slots=True)
class TopicPattern:
    """Subscription pattern built from literal and wildcard segments."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        """Reject empty patterns and non-terminal ``**`` segments."""
        if not self.segments or self.segments == ("",):
            raise TopicPatternError.empty()
        if MULTI_WILDCARD in self.segments[:-1]:
            raise TopicPatternError.misplaced_multi_wildcard(str(self))

    @classmethod
    def parse(cls, text: str) -> TopicPattern:
        """Build a pattern from its delimited string form."""
        return cls(split_segments(text))

    @property
    def is_literal(self) -> bool:
        """Return whether the pattern contains no wildcard segments."""
        return not any(
            segment in {SINGLE_WILDCARD, MULTI_WILDCARD} for segment in self.segments
        )

    def matches(self, topic: Topic) -> bool:
        """Return whether ``topic`` falls under this pattern."""
        return match_segments(self.segments, topic.segments)

    def __str__(self) -> str:
        """Return the delimited string form."""
        return DELIMITER.join(self.segments)


__all__ = [
    "DELIMITER",
    "MULTI_WILDCARD",
    "SINGLE_WILDCARD",
    "Topic",
    "TopicPattern",
    "TopicPatternError",
    "match_segments",
    "split_segments",
]
