"""Unit tests for herald.api.errors handlers.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_errors.py

"""

from __future__ import annotations

from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from herald.api.errors import register_error_handlers
from herald.webhooks.errors import (
    MalformedPayloadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    WebhookError,
)


class _RaisingResource:
    """Resource that raises the error chosen by the route."""

    def __init__(self, error: WebhookError) -> None:
        self._error = error

    async def on_post(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        raise self._error


@pytest.fixture
def client() -> falcon.testing.TestClient:
    """Build a test client with the error handlers registered."""
    app = falcon.asgi.App()
    app.add_route("/large", _RaisingResource(PayloadTooLargeError(10)))
    app.add_route(
        "/malformed", _RaisingResource(MalformedPayloadError("unexpected token"))
    )
    app.add_route("/form", _RaisingResource(UnsupportedMediaTypeError.form_disabled()))
    register_error_handlers(app)
    return falcon.testing.TestClient(app)


@pytest.mark.parametrize(
    ("path", "status"),
    [
        ("/large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE),
        ("/malformed", HTTPStatus.BAD_REQUEST),
        ("/form", HTTPStatus.UNSUPPORTED_MEDIA_TYPE),
    ],
)
def test_errors_map_to_empty_responses(
    client: falcon.testing.TestClient, path: str, status: HTTPStatus
) -> None:
    """Each rejection has its status code and no body."""
    result = client.simulate_post(path)

    assert result.status_code == status
    assert result.content == b""


def test_too_large_closes_connection(client: falcon.testing.TestClient) -> None:
    """Oversized deliveries ask the client to close the connection."""
    result = client.simulate_post("/large")

    assert result.headers.get("connection") == "close"


def test_error_messages_do_not_leak(client: falcon.testing.TestClient) -> None:
    """Parser details never reach the response."""
    result = client.simulate_post("/malformed")

    assert "unexpected token" not in result.text
