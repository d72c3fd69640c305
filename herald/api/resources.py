"""Falcon sink that terminates webhook deliveries.

The listener reads and decodes the body, answers ``202 Accepted`` and then
hands the delivery to the notifier as a post-response callback. Signature
verification and routing therefore run only after the response has been
sent: neither the status code nor the response latency depend on whether
the delivery was authentic. Only an oversized body, a disallowed content
kind, or JSON that does not decode are reported to the client.

Usage
-----
Install the listener on every path::

    listener = WebhookListener(notifier, config=config)
    app.add_sink(listener.handle, prefix="/")

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon
import msgspec
from falcon.uri import parse_query_string

from herald.config import HeraldConfig
from herald.webhooks.errors import (
    MalformedPayloadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    WebhookError,
)
from herald.webhooks.models import WebhookDelivery

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from herald.webhooks import WebhookNotifier

__all__ = ["FORM_CONTENT_KIND", "JSON_CONTENT_KIND", "WebhookListener"]

JSON_CONTENT_KIND = "application/json"
FORM_CONTENT_KIND = "application/x-www-form-urlencoded"
FORM_PAYLOAD_FIELD = "payload"


def content_kind(content_type: str | None) -> str:
    """Return the media type of a Content-Type header without parameters."""
    if not content_type:
        return JSON_CONTENT_KIND
    return content_type.split(";", 1)[0].strip().lower()


class WebhookListener:
    """Accept webhook deliveries on any path.

    Parameters
    ----------
    notifier
        Pipeline that authenticates, normalizes and routes deliveries.
    config
        Deployment configuration providing the body ceiling and whether
        form-encoded deliveries are accepted.

    """

    def __init__(
        self,
        notifier: WebhookNotifier,
        *,
        config: HeraldConfig | None = None,
    ) -> None:
        """Initialise the listener with its notifier and configuration."""
        self._notifier = notifier
        self._config = config or HeraldConfig()

    async def handle(self, req: Request, resp: Response, **_params: str) -> None:
        """Handle one delivery; installed as a Falcon sink.

        Raises
        ------
        falcon.HTTPMethodNotAllowed
            For methods other than POST.
        PayloadTooLargeError
            When the body exceeds ``max_body_bytes`` (mapped to 413).
        UnsupportedMediaTypeError
            For form bodies when form payloads are disabled (mapped to 415).
        MalformedPayloadError
            When the payload is not valid JSON (mapped to 400).

        """
        if req.method != "POST":
            raise falcon.HTTPMethodNotAllowed(["POST"])

        try:
            body = await self._read_body(req)
            delivery = self._decode(req, body)
        except PayloadTooLargeError as exc:
            self._reject(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, exc)
            raise
        except UnsupportedMediaTypeError as exc:
            self._reject(HTTPStatus.UNSUPPORTED_MEDIA_TYPE, exc)
            raise
        except MalformedPayloadError as exc:
            self._reject(HTTPStatus.BAD_REQUEST, exc)
            raise

        # The response is committed before any secret-based check runs.
        resp.status = falcon.HTTP_202
        resp.data = b""
        self._notifier.event_logger.log_delivery_accepted(delivery)

        notifier = self._notifier

        async def dispatch() -> None:
            notifier.process(delivery)

        resp.schedule(dispatch)

    def _reject(self, status: HTTPStatus, error: WebhookError) -> None:
        self._notifier.event_logger.log_delivery_rejected(int(status), error)
        self._notifier.report_error(error)

    async def _read_body(self, req: Request) -> bytes:
        limit = self._config.max_body_bytes
        if req.content_length is not None and req.content_length > limit:
            raise PayloadTooLargeError(limit)

        body = bytearray()
        async for chunk in req.stream:
            body.extend(chunk)
            if len(body) > limit:
                raise PayloadTooLargeError(limit)
        return bytes(body)

    def _decode(self, req: Request, body: bytes) -> WebhookDelivery:
        kind = content_kind(req.content_type)
        payload = body
        if kind == FORM_CONTENT_KIND:
            if not self._config.accept_form_payloads:
                raise UnsupportedMediaTypeError.form_disabled()
            payload = self._form_payload(body)

        try:
            data = msgspec.json.decode(payload)
        except msgspec.DecodeError as exc:
            raise MalformedPayloadError.invalid_json(exc) from exc

        return WebhookDelivery.from_headers(
            body=body,
            headers=req.headers,
            content_kind=kind,
            data=data,
        )

    @staticmethod
    def _form_payload(body: bytes) -> bytes:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPayloadError.invalid_json(exc) from exc

        fields = parse_query_string(text, keep_blank=True, csv=False)
        value = fields.get(FORM_PAYLOAD_FIELD)
        if isinstance(value, list):
            value = value[0]
        if value is None:
            raise MalformedPayloadError.missing_form_field(FORM_PAYLOAD_FIELD)
        return value.encode("utf-8")
