"""Shared-secret authentication for webhook deliveries.

Deliveries are signed with HMAC-SHA256 over the exact request body and the
hex digest is sent as ``sha256=<digest>`` in the ``X-Hub-Signature-256``
header. Comparison is constant-time so validation latency does not reveal
how much of a forged signature was correct.

Examples
--------
>>> body = b'{"zen": "Keep it logically awesome."}'
>>> header = compute_signature("s3cret", body)
>>> verify_signature("s3cret", body, header)
True
>>> verify_signature("s3cret", body, None)
False
>>> verify_signature("", body, None)
True

"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Return the expected signature header value for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(secret: str, body: bytes, provided: str | None) -> bool:
    """Return whether ``provided`` authenticates ``body`` under ``secret``.

    An empty ``secret`` disables authentication and always succeeds. A
    missing header or one whose length differs from the expected token is
    rejected before the constant-time comparison runs.
    """
    if not secret:
        return True

    expected = compute_signature(secret, body).encode("ascii")
    actual = (provided or "").encode("utf-8")
    if len(actual) != len(expected):
        return False
    return hmac.compare_digest(actual, expected)


__all__ = [
    "SIGNATURE_HEADER",
    "SIGNATURE_PREFIX",
    "compute_signature",
    "verify_signature",
]
