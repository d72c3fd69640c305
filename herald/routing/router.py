"""Fan events out to subscriptions by topic pattern.

Subscriptions are registered during startup and the router is then sealed;
publishing walks the subscription list in registration order and invokes
every callback whose pattern matches, so overlapping patterns each receive
the event.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

from .topics import Topic, TopicPattern

type SubscriberCallback = cabc.Callable[[typ.Any], object]


class RouterSealedError(RuntimeError):
    """Raised when subscribing after the router has been sealed."""

    @classmethod
    def for_pattern(cls, pattern: TopicPattern) -> RouterSealedError:
        """Return an error naming the rejected pattern."""
        return cls(f"cannot subscribe to {pattern} after startup")


@dataclasses.dataclass(frozen=True, slots=True)
class Subscription:
    """A topic pattern bound to a callback."""

    pattern: TopicPattern
    callback: SubscriberCallback

    def matches(self, topic: Topic) -> bool:
        """Return whether this subscription should receive ``topic``."""
        return self.pattern.matches(topic)


@dataclasses.dataclass(frozen=True, slots=True)
class SubscriberFailure:
    """A callback that raised while handling a published event."""

    subscription: Subscription
    error: Exception


@dataclasses.dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of one :meth:`TopicRouter.publish` call."""

    topic: Topic
    delivered: int
    failures: tuple[SubscriberFailure, ...] = ()

    @property
    def matched(self) -> int:
        """Return the number of subscriptions that matched the topic."""
        return self.delivered + len(self.failures)


class TopicRouter:
    """Ordered list of subscriptions with wildcard topic matching."""

    def __init__(self) -> None:
        """Initialise an empty, unsealed router."""
        self._subscriptions: list[Subscription] = []
        self._sealed = False

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        """Return the registered subscriptions in registration order."""
        return tuple(self._subscriptions)

    @property
    def sealed(self) -> bool:
        """Return whether the subscription list is frozen."""
        return self._sealed

    def subscribe(
        self,
        pattern: str | TopicPattern,
        callback: SubscriberCallback,
    ) -> Subscription:
        """Register ``callback`` for topics matching ``pattern``.

        Raises
        ------
        TopicPatternError
            If ``pattern`` is malformed.
        RouterSealedError
            If the router has already been sealed.

        """
        parsed = TopicPattern.parse(pattern) if isinstance(pattern, str) else pattern
        if self._sealed:
            raise RouterSealedError.for_pattern(parsed)
        subscription = Subscription(pattern=parsed, callback=callback)
        self._subscriptions.append(subscription)
        return subscription

    def seal(self) -> None:
        """Freeze the subscription list; later subscribes are rejected."""
        self._sealed = True

    def matching(self, topic: Topic) -> list[Subscription]:
        """Return subscriptions matching ``topic`` in registration order."""
        return [sub for sub in self._subscriptions if sub.matches(topic)]

    def publish(self, topic: str | Topic, event: object) -> PublishResult:
        """Invoke every subscription matching ``topic`` with ``event``.

        A callback that raises does not prevent later matching callbacks
        from running; its exception is returned in the result.
        """
        resolved = Topic.parse(topic) if isinstance(topic, str) else topic
        delivered = 0
        failures: list[SubscriberFailure] = []
        for subscription in self.matching(resolved):
            try:
                subscription.callback(event)
            except Exception as exc:  # noqa: BLE001 - reported via PublishResult
                failures.append(SubscriberFailure(subscription, exc))
            else:
                delivered += 1
        return PublishResult(
            topic=resolved, delivered=delivered, failures=tuple(failures)
        )


__all__ = [
    "PublishResult",
    "RouterSealedError",
    "SubscriberCallback",
    "SubscriberFailure",
    "Subscription",
    "TopicRouter",
]
