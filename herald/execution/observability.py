"""Structured log events for subscriber script execution."""

from __future__ import annotations

import enum

from herald.logging import (
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
    script_logger_name,
)

logger = get_logger(__name__)


class ExecutionEventType(enum.StrEnum):
    """Structured log event types for execution queues."""

    JOB_QUEUED = "execution.job.queued"
    JOB_REJECTED = "execution.job.rejected"
    JOB_STARTED = "execution.job.started"
    JOB_EXITED = "execution.job.exited"
    JOB_SPAWN_FAILED = "execution.job.spawn_failed"
    QUEUE_IDLE = "execution.queue.idle"


class ExecutionEventLogger:
    """Emit structured execution events via femtologging.

    Exit codes are reported at INFO for success and WARNING otherwise; a
    failing script never stops its queue.
    """

    def log_job_queued(self, script: str, identifier: str, pending: int) -> None:
        """Log a job admitted to a script queue."""
        log_info(
            logger,
            "[%s] script=%s identifier=%s pending=%d",
            ExecutionEventType.JOB_QUEUED,
            script,
            identifier,
            pending,
        )

    def log_job_rejected(self, script: str, error: BaseException) -> None:
        """Log a job refused by the identifier check."""
        log_warning(
            logger,
            "[%s] script=%s error_message=%s",
            ExecutionEventType.JOB_REJECTED,
            script,
            str(error),
        )

    def log_job_started(self, script: str, identifier: str) -> None:
        """Log a spawn attempt for a job."""
        log_info(
            logger,
            "[%s] script=%s identifier=%s",
            ExecutionEventType.JOB_STARTED,
            script,
            identifier,
        )

    def log_job_exited(self, script: str, identifier: str, exit_code: int) -> None:
        """Log the exit of a job's process after its streams closed."""
        log = log_info if exit_code == 0 else log_warning
        log(
            logger,
            "[%s] script=%s identifier=%s exit_code=%d",
            ExecutionEventType.JOB_EXITED,
            script,
            identifier,
            exit_code,
        )

    def log_spawn_failed(
        self, script: str, identifier: str, error: BaseException
    ) -> None:
        """Log a job whose process could not be started."""
        log_error(
            logger,
            "[%s] script=%s identifier=%s error_type=%s error_message=%s",
            ExecutionEventType.JOB_SPAWN_FAILED,
            script,
            identifier,
            type(error).__name__,
            str(error),
        )

    def log_queue_idle(self, script: str) -> None:
        """Log a queue that has no running or pending jobs."""
        log_info(logger, "[%s] script=%s", ExecutionEventType.QUEUE_IDLE, script)


class ScriptOutputLogger:
    """Log one script's output lines on a per-script logger at DEBUG."""

    def __init__(self, script_name: str) -> None:
        """Bind to the ``herald.script.<script_name>`` logger."""
        self._logger = get_logger(script_logger_name(script_name))

    def __call__(self, stream: str, line: str) -> None:
        """Log ``line`` prefixed by its stream name (``out``/``err``)."""
        log_debug(self._logger, "%s %s", stream, line)
