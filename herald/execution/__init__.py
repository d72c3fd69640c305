"""Serialized execution of subscriber scripts."""

from __future__ import annotations

from .errors import ExternalProcessError, InvalidJobIdentifierError
from .observability import (
    ExecutionEventLogger,
    ExecutionEventType,
    ScriptOutputLogger,
)
from .queue import ExecutionQueue, JobOutcome, QueueJob, validate_identifier
from .registry import ScriptHandle, ScriptQueueRegistry

__all__ = [
    "ExecutionEventLogger",
    "ExecutionEventType",
    "ExecutionQueue",
    "ExternalProcessError",
    "InvalidJobIdentifierError",
    "JobOutcome",
    "QueueJob",
    "ScriptHandle",
    "ScriptOutputLogger",
    "ScriptQueueRegistry",
    "validate_identifier",
]
