"""Falcon error handlers for deliveries rejected before acceptance.

Responses carry a status code and an empty body so a rejected delivery
reveals nothing beyond the status itself.

Usage
-----
Register error handlers on the Falcon app::

    from herald.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from herald.webhooks.errors import (
    MalformedPayloadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "handle_malformed_payload",
    "handle_payload_too_large",
    "handle_unsupported_media_type",
    "register_error_handlers",
]


def _empty(resp: Response, status: str) -> None:
    resp.status = status
    resp.data = b""


async def handle_payload_too_large(
    _req: Request,
    resp: Response,
    _ex: PayloadTooLargeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PayloadTooLargeError`` to HTTP 413 and close the connection."""
    _empty(resp, falcon.HTTP_413)
    resp.set_header("Connection", "close")


async def handle_malformed_payload(
    _req: Request,
    resp: Response,
    _ex: MalformedPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``MalformedPayloadError`` to an empty HTTP 400 response."""
    _empty(resp, falcon.HTTP_400)


async def handle_unsupported_media_type(
    _req: Request,
    resp: Response,
    _ex: UnsupportedMediaTypeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UnsupportedMediaTypeError`` to an empty HTTP 415 response."""
    _empty(resp, falcon.HTTP_415)


def register_error_handlers(app: App) -> None:
    """Install the pre-acceptance error handlers on ``app``."""
    app.add_error_handler(PayloadTooLargeError, handle_payload_too_large)
    app.add_error_handler(MalformedPayloadError, handle_malformed_payload)
    app.add_error_handler(UnsupportedMediaTypeError, handle_unsupported_media_type)
