"""Typed models for webhook deliveries and canonical events."""

from __future__ import annotations

import dataclasses
import types
import typing as typ

import msgspec

from herald.routing.topics import Topic

EVENT_TYPE_HEADER = "X-GitHub-Event"
DELIVERY_ID_HEADER = "X-GitHub-Delivery"
PING_EVENT = "ping"


class RepositoryOwner(msgspec.Struct, kw_only=True):
    """Owner object embedded in a webhook ``repository``.

    Organisation and user payloads carry ``login``; some legacy payload
    shapes only carry ``name``.
    """

    login: str | None = None
    name: str | None = None


class RepositoryRef(msgspec.Struct, kw_only=True):
    """Repository object common to every repository-scoped webhook."""

    name: str
    owner: RepositoryOwner


class RepositoryEnvelope(msgspec.Struct, kw_only=True):
    """Fields every routable delivery must carry."""

    repository: RepositoryRef


class PushPayload(msgspec.Struct, kw_only=True):
    """Subset of the ``push`` event payload Herald consumes."""

    after: str
    ref: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookDelivery:
    """An inbound request after its body has been read and decoded.

    Attributes
    ----------
    body
        Exact bytes received; signatures are computed over these.
    headers
        Request headers keyed by lower-cased name.
    content_kind
        Media type of the request without parameters.
    data
        Decoded JSON payload.

    """

    body: bytes
    headers: typ.Mapping[str, str]
    content_kind: str
    data: typ.Any

    @classmethod
    def from_headers(
        cls,
        body: bytes,
        headers: typ.Mapping[str, str],
        content_kind: str,
        data: typ.Any,  # noqa: ANN401 - decoded JSON is untyped
    ) -> WebhookDelivery:
        """Build a delivery, folding header names to lower case."""
        folded = {name.lower(): value for name, value in headers.items()}
        return cls(body=body, headers=folded, content_kind=content_kind, data=data)

    def header(self, name: str) -> str | None:
        """Return a header value by case-insensitive name."""
        return self.headers.get(name.lower())

    @property
    def event_type(self) -> str:
        """Return the webhook kind, or an empty string when absent."""
        return (self.header(EVENT_TYPE_HEADER) or "").strip()

    @property
    def delivery_id(self) -> str | None:
        """Return the host-assigned delivery identifier, if any."""
        return self.header(DELIVERY_ID_HEADER)


@dataclasses.dataclass(frozen=True, slots=True)
class NormalizedEvent:
    """Canonical event routed to subscribers.

    ``owner``, ``repo`` and ``type`` are always non-empty. ``fields`` is a
    read-only mapping of values such as ``commit``, ``branch`` or ``tag``.
    """

    owner: str
    repo: str
    type: str
    fields: typ.Mapping[str, str] = dataclasses.field(default_factory=dict)
    topic_suffix: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Freeze ``fields`` so subscribers share one read-only view."""
        object.__setattr__(self, "fields", types.MappingProxyType(dict(self.fields)))

    @property
    def topic(self) -> Topic:
        """Return the routing address ``owner/repo/type[/suffix...]``."""
        return Topic((self.owner, self.repo, self.type, *self.topic_suffix))

    @property
    def commit(self) -> str | None:
        """Return the commit identifier carried by the event, if any."""
        return self.fields.get("commit")


@dataclasses.dataclass(frozen=True, slots=True)
class EventDetails:
    """Event-specific output of a normalization handler."""

    fields: dict[str, str] = dataclasses.field(default_factory=dict)
    topic_suffix: tuple[str, ...] = ()
