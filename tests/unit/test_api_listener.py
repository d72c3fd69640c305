"""HTTP behaviour of the webhook listener."""

from __future__ import annotations

import typing as typ
import urllib.parse
from http import HTTPStatus

import falcon.testing
import msgspec
import pytest

from herald.config import HeraldConfig
from herald.webhooks import (
    MalformedPayloadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from herald.webhooks.signature import compute_signature
from tests.helpers.pipeline import Pipeline
from tests.helpers.webhook_mocks import (
    BAD_INVALID_JSON,
    BAD_LARGE_JSON,
    COMMIT,
    EXAMPLE_PING,
    EXAMPLE_PUSH_BRANCH,
    SECRET,
    SECURE_PUSH_TAG_BADLY_SIGNED,
    SECURE_PUSH_TAG_SIGNED,
    SECURE_PUSH_TAG_UNSIGNED,
    WebhookMock,
    push_payload,
)

if typ.TYPE_CHECKING:
    from herald.webhooks.models import NormalizedEvent


def _record(pipeline: Pipeline, pattern: str = "**") -> list[NormalizedEvent]:
    events: list[NormalizedEvent] = []
    pipeline.notifier.subscribe(pattern, events.append)
    return events


def _form_mock(payload: dict[str, typ.Any], *, secret: str = "") -> WebhookMock:
    body = urllib.parse.urlencode(
        {"payload": msgspec.json.encode(payload).decode()}
    ).encode()
    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-GitHub-Event": "push",
    }
    if secret:
        headers["X-Hub-Signature-256"] = compute_signature(secret, body)
    return WebhookMock(headers=headers, body=body, secret=secret)


class TestAcceptance:
    """Well-formed deliveries are accepted and routed after the response."""

    @pytest.mark.parametrize("path", ["/", "/hooks/github", "/a/b/c"])
    async def test_push_accepted_on_any_path(
        self, pipeline: Pipeline, path: str
    ) -> None:
        """Any POST path answers 202 with an empty body and routes the event."""
        events = _record(pipeline, "example/test/push/heads/main")
        expected = len(pipeline.notifier.results) + 1

        result = await pipeline.post(EXAMPLE_PUSH_BRANCH, path)
        await pipeline.notifier.wait_processed(expected)

        assert result.status_code == HTTPStatus.ACCEPTED
        assert result.content == b""
        assert [event.commit for event in events] == [COMMIT]

    async def test_ping_acknowledged_without_routing(
        self, pipeline: Pipeline
    ) -> None:
        """Ping deliveries get 202 and invoke no subscriber."""
        events = _record(pipeline)

        result = await pipeline.deliver(EXAMPLE_PING)

        assert result.status_code == HTTPStatus.ACCEPTED
        assert events == []
        assert pipeline.notifier.results == [None]

    async def test_missing_content_type_treated_as_json(
        self, pipeline: Pipeline
    ) -> None:
        """A body without Content-Type is decoded as JSON."""
        events = _record(pipeline)
        headers = {"X-GitHub-Event": "push"}

        result = await pipeline.deliver(
            WebhookMock(headers=headers, body=EXAMPLE_PUSH_BRANCH.body)
        )

        assert result.status_code == HTTPStatus.ACCEPTED
        assert len(events) == 1

    async def test_form_payload_routed(self, pipeline: Pipeline) -> None:
        """Form-encoded deliveries carry their JSON in the payload field."""
        events = _record(pipeline, "example/test/push/tags/*")

        result = await pipeline.deliver(_form_mock(push_payload("refs/tags/v1.0")))

        assert result.status_code == HTTPStatus.ACCEPTED
        assert [event.fields["tag"] for event in events] == ["v1.0"]

    async def test_malformed_shape_after_acceptance(self, pipeline: Pipeline) -> None:
        """Valid JSON with the wrong shape is accepted then reported."""
        events = _record(pipeline)
        mock = WebhookMock(
            headers={"Content-Type": "application/json", "X-GitHub-Event": "push"},
            body=b'{"after": "abc"}',
        )

        result = await pipeline.deliver(mock)

        assert result.status_code == HTTPStatus.ACCEPTED
        assert events == []
        assert len(pipeline.notifier.errors) == 1
        assert isinstance(pipeline.notifier.errors[0], MalformedPayloadError)


class TestRejection:
    """Rejections happen before acceptance and never reach subscribers."""

    async def test_oversized_body(self, pipeline: Pipeline) -> None:
        """Bodies above the ceiling get 413 and one error notification."""
        events = _record(pipeline)

        result = await pipeline.post(BAD_LARGE_JSON)

        assert result.status_code == HTTPStatus.REQUEST_ENTITY_TOO_LARGE
        assert result.content == b""
        assert events == []
        assert len(pipeline.notifier.errors) == 1
        assert isinstance(pipeline.notifier.errors[0], PayloadTooLargeError)
        assert pipeline.notifier.results == []

    async def test_custom_body_ceiling(self) -> None:
        """The ceiling comes from configuration."""
        pipeline = Pipeline.build(HeraldConfig(max_body_bytes=64))

        result = await pipeline.post(EXAMPLE_PUSH_BRANCH)

        assert result.status_code == HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    async def test_oversized_streamed_body(self) -> None:
        """A chunked body is cut off with 413 once it passes the ceiling."""
        pipeline = Pipeline.build(HeraldConfig(max_body_bytes=1024))
        events = _record(pipeline)

        response = await pipeline.stream(BAD_LARGE_JSON, chunk_size=512)

        assert response.status == HTTPStatus.REQUEST_ENTITY_TOO_LARGE
        assert response.body == b""
        assert events == []
        assert len(pipeline.notifier.errors) == 1
        assert isinstance(pipeline.notifier.errors[0], PayloadTooLargeError)
        assert pipeline.notifier.results == []

    async def test_body_at_ceiling_accepted(self) -> None:
        """A body of exactly the ceiling is still accepted."""
        limit = len(EXAMPLE_PUSH_BRANCH.body)
        pipeline = Pipeline.build(HeraldConfig(max_body_bytes=limit))
        events = _record(pipeline)

        posted = await pipeline.deliver(EXAMPLE_PUSH_BRANCH)
        streamed = await pipeline.stream(EXAMPLE_PUSH_BRANCH, chunk_size=64)

        assert posted.status_code == HTTPStatus.ACCEPTED
        assert streamed.status == HTTPStatus.ACCEPTED
        assert len(events) == 2
        assert pipeline.notifier.errors == []

    async def test_invalid_json(self, pipeline: Pipeline) -> None:
        """Undecodable JSON gets 400 and exactly one error notification."""
        events = _record(pipeline)

        result = await pipeline.post(BAD_INVALID_JSON)

        assert result.status_code == HTTPStatus.BAD_REQUEST
        assert result.content == b""
        assert events == []
        assert len(pipeline.notifier.errors) == 1
        assert isinstance(pipeline.notifier.errors[0], MalformedPayloadError)

    async def test_form_without_payload_field(self, pipeline: Pipeline) -> None:
        """A form body lacking the payload field is malformed."""
        mock = WebhookMock(
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body=b"other=1",
        )

        result = await pipeline.post(mock)

        assert result.status_code == HTTPStatus.BAD_REQUEST

    async def test_form_rejected_when_disabled(self) -> None:
        """Hardened deployments answer form deliveries with 415."""
        pipeline = Pipeline.build(HeraldConfig(accept_form_payloads=False))

        result = await pipeline.post(_form_mock(push_payload("refs/heads/main")))

        assert result.status_code == HTTPStatus.UNSUPPORTED_MEDIA_TYPE
        assert isinstance(pipeline.notifier.errors[0], UnsupportedMediaTypeError)

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_other_methods_not_allowed(
        self, pipeline: Pipeline, method: str
    ) -> None:
        """Only POST is served."""
        async with falcon.testing.ASGIConductor(pipeline.app()) as conductor:
            result = await conductor.simulate_request(method, "/")

        assert result.status_code == HTTPStatus.METHOD_NOT_ALLOWED
        assert "POST" in result.headers.get("allow", "")


class TestAuthentication:
    """Signature checks happen after the 202 is sent."""

    @pytest.fixture
    def secure_pipeline(self, secure_config: HeraldConfig) -> Pipeline:
        """Return a pipeline configured with the fixture secret."""
        return Pipeline.build(secure_config)

    async def test_signed_delivery_routed(self, secure_pipeline: Pipeline) -> None:
        """A valid signature lets the event through."""
        events = _record(secure_pipeline, "example/test/push/tags/*")

        result = await secure_pipeline.deliver(SECURE_PUSH_TAG_SIGNED)

        assert result.status_code == HTTPStatus.ACCEPTED
        assert len(events) == 1

    @pytest.mark.parametrize(
        "mock",
        [
            pytest.param(SECURE_PUSH_TAG_UNSIGNED, id="unsigned"),
            pytest.param(SECURE_PUSH_TAG_BADLY_SIGNED, id="badly-signed"),
        ],
    )
    async def test_unauthenticated_delivery_still_accepted(
        self, secure_pipeline: Pipeline, mock: WebhookMock
    ) -> None:
        """Bad signatures get the same 202 and are dropped silently."""
        events = _record(secure_pipeline)

        result = await secure_pipeline.deliver(mock)

        assert result.status_code == HTTPStatus.ACCEPTED
        assert result.content == b""
        assert events == []
        assert secure_pipeline.notifier.errors == []

    async def test_signed_form_payload(self, secure_config: HeraldConfig) -> None:
        """Form deliveries are signed over the raw form body."""
        pipeline = Pipeline.build(secure_config)
        events = _record(pipeline)

        await pipeline.deliver(_form_mock(push_payload("refs/heads/main"), secret=SECRET))

        assert len(events) == 1
