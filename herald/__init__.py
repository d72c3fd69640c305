"""Herald: route source-control webhooks to serialized subscriber scripts."""

from __future__ import annotations

__all__: list[str] = []
