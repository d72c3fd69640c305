"""Map decoded webhook payloads onto :class:`NormalizedEvent`.

Each event type may register a handler that extracts event-specific fields
and a topic suffix; types without a handler normalize to an event with no
fields and no suffix. Owner and repository are resolved the same way for
every type.

Examples
--------
>>> normalizer = EventNormalizer()
>>> event = normalizer.normalize(
...     "push",
...     {
...         "ref": "refs/heads/release/1.2",
...         "after": "f2f2",
...         "repository": {"name": "test", "owner": {"login": "example"}},
...     },
... )
>>> str(event.topic)
'example/test/push/heads/release/1.2'
>>> event.fields["branch"]
'release/1.2'

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import re
import typing as typ

import msgspec

from herald.routing.topics import DELIMITER

from .errors import MalformedPayloadError
from .models import EventDetails, NormalizedEvent, PushPayload, RepositoryEnvelope

type EventHandler = cabc.Callable[[typ.Any], EventDetails]

DEFAULT_OWNER_FIELDS: tuple[str, ...] = ("login", "name")

_REF_PATTERN = re.compile(r"refs/(?P<kind>heads|tags)/(?P<name>.+)")
_REF_FIELD_BY_KIND = {"heads": "branch", "tags": "tag"}


@dataclasses.dataclass(frozen=True, slots=True)
class NormalizerConfig:
    """Configuration for :class:`EventNormalizer`.

    Attributes
    ----------
    owner_fields
        Owner object fields tried in order when resolving the owner
        identifier. ``login`` is preferred over ``name`` by default.

    """

    owner_fields: tuple[str, ...] = DEFAULT_OWNER_FIELDS


def _convert[T](data: object, target: type[T], event_type: str) -> T:
    try:
        return msgspec.convert(data, type=target)
    except msgspec.ValidationError as exc:
        raise MalformedPayloadError.invalid_shape(event_type, exc) from exc


def normalize_default(_data: object) -> EventDetails:
    """Return empty details for event types without a dedicated handler."""
    return EventDetails()


def normalize_push(data: object) -> EventDetails:
    """Extract the head commit and branch or tag from a ``push`` payload.

    Branch and tag names keep any interior slashes; the topic suffix is the
    ref without its ``refs/`` prefix, split into segments.
    """
    payload = _convert(data, PushPayload, "push")
    fields = {"commit": payload.after}

    match = _REF_PATTERN.fullmatch(payload.ref)
    if match is None:
        return EventDetails(fields=fields)

    kind = match.group("kind")
    name = match.group("name")
    fields[_REF_FIELD_BY_KIND[kind]] = name
    return EventDetails(fields=fields, topic_suffix=(kind, *name.split(DELIMITER)))


DEFAULT_HANDLERS: cabc.Mapping[str, EventHandler] = {"push": normalize_push}


class EventNormalizer:
    """Dispatch payloads to per-event-type handlers.

    Parameters
    ----------
    config
        Owner-resolution settings. Defaults to :class:`NormalizerConfig`.
    handlers
        Extra or replacement handlers keyed by event type, merged over
        :data:`DEFAULT_HANDLERS`.

    """

    def __init__(
        self,
        config: NormalizerConfig | None = None,
        handlers: cabc.Mapping[str, EventHandler] | None = None,
    ) -> None:
        """Initialise the normalizer with owner settings and handlers."""
        self._config = config or NormalizerConfig()
        self._handlers: dict[str, EventHandler] = {
            **DEFAULT_HANDLERS,
            **(handlers or {}),
        }

    def handler_for(self, event_type: str) -> EventHandler:
        """Return the handler for ``event_type``, or the default handler."""
        return self._handlers.get(event_type, normalize_default)

    def normalize(self, event_type: str, data: object) -> NormalizedEvent:
        """Return the canonical event for a decoded payload.

        Raises
        ------
        MalformedPayloadError
            If the payload lacks a usable repository, owner or the fields
            its event type requires.

        """
        if not event_type:
            msg = "missing event type"
            raise MalformedPayloadError(msg)

        envelope = _convert(data, RepositoryEnvelope, event_type)
        repository = envelope.repository
        if not repository.name:
            raise MalformedPayloadError.invalid_shape(
                event_type, "empty repository name"
            )

        details = self.handler_for(event_type)(data)
        return NormalizedEvent(
            owner=self._resolve_owner(envelope),
            repo=repository.name,
            type=event_type,
            fields=details.fields,
            topic_suffix=details.topic_suffix,
        )

    def _resolve_owner(self, envelope: RepositoryEnvelope) -> str:
        owner = envelope.repository.owner
        for field in self._config.owner_fields:
            value = getattr(owner, field, None)
            if value:
                return value
        raise MalformedPayloadError.missing_owner()


__all__ = [
    "DEFAULT_HANDLERS",
    "DEFAULT_OWNER_FIELDS",
    "EventHandler",
    "EventNormalizer",
    "NormalizerConfig",
    "normalize_default",
    "normalize_push",
]
