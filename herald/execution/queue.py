"""Serialized, FIFO execution of one subscriber script.

Scripts commonly deploy services or mutate a working copy, so runs for the
same script must never overlap and must finish in the order they were
queued: the last event's run is the one whose end state survives.

Each :class:`ExecutionQueue` owns an ``asyncio.Queue`` of pending jobs and a
single drain task. The drain task spawns the script with the job identifier
as its only argument, streams stdout and stderr line by line to an output
observer, and only takes the next job once both streams have closed and the
process has exited.

Usage
-----
Queue two runs of a deploy script from inside the event loop::

    queue = ExecutionQueue(Path("notifier.d/deploy.sh"))
    queue.enqueue(QueueJob(identifier="f2f2f2f2"))
    queue.enqueue(QueueJob(identifier="a1a1a1a1"))
    await queue.wait_idle()

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import contextlib
import dataclasses
import re
from pathlib import Path

from herald.logging import get_logger, log_exception, log_warning

from .errors import ExternalProcessError, InvalidJobIdentifierError
from .observability import ExecutionEventLogger, ScriptOutputLogger

type OutputObserver = cabc.Callable[[str, str], object]
type IdleHook = cabc.Callable[[str], object]
type OutcomeHook = cabc.Callable[[JobOutcome], object]

logger = get_logger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"[0-9a-f]+")

# Scripts may print long lines (e.g. JSON dumps); raise asyncio's 64 KiB default.
_STREAM_LIMIT = 1024 * 1024


def validate_identifier(identifier: object) -> str:
    """Return ``identifier`` if it is a non-empty lowercase hex string.

    Raises
    ------
    InvalidJobIdentifierError
        If the identifier is not a string or contains other characters.

    """
    if not isinstance(identifier, str) or not _IDENTIFIER_PATTERN.fullmatch(
        identifier
    ):
        raise InvalidJobIdentifierError(identifier)
    return identifier


@dataclasses.dataclass(frozen=True, slots=True)
class QueueJob:
    """One requested script run.

    Attributes
    ----------
    identifier
        Commit id passed to the script as its single argument.
    payload
        Opaque context, usually the event that triggered the job.

    """

    identifier: str
    payload: object = None


@dataclasses.dataclass(frozen=True, slots=True)
class JobOutcome:
    """Result of running one job to completion."""

    job: QueueJob
    exit_code: int | None
    error: ExternalProcessError | None = None

    @property
    def succeeded(self) -> bool:
        """Return whether the script ran and exited with code 0."""
        return self.exit_code == 0


class ExecutionQueue:
    """FIFO queue running one script, one job at a time.

    Parameters
    ----------
    script
        Path of the executable; it doubles as the queue's ScriptKey.
    event_logger
        Structured event logger. Defaults to :class:`ExecutionEventLogger`.
    output_observer
        Called with ``("out" | "err", line)`` for every non-empty output
        line. Defaults to a DEBUG logger named after the script.
    on_idle
        Called with the script key whenever the queue drains.
    on_outcome
        Called with the :class:`JobOutcome` of every finished job.

    """

    def __init__(
        self,
        script: Path,
        *,
        event_logger: ExecutionEventLogger | None = None,
        output_observer: OutputObserver | None = None,
        on_idle: IdleHook | None = None,
        on_outcome: OutcomeHook | None = None,
    ) -> None:
        """Initialise an idle queue for ``script``."""
        self._script = Path(script)
        self._event_logger = event_logger or ExecutionEventLogger()
        self._output_observer = output_observer or ScriptOutputLogger(
            self._script.name
        )
        self._on_idle = on_idle
        self._on_outcome = on_outcome
        self._jobs: asyncio.Queue[QueueJob] = asyncio.Queue()
        self._running: QueueJob | None = None
        self._worker: asyncio.Task[None] | None = None

    @property
    def script(self) -> Path:
        """Return the script path this queue executes."""
        return self._script

    @property
    def script_key(self) -> str:
        """Return the key identifying this queue's script."""
        return str(self._script)

    @property
    def running(self) -> QueueJob | None:
        """Return the job whose process is currently running, if any."""
        return self._running

    @property
    def pending(self) -> int:
        """Return the number of jobs waiting behind the running one."""
        return self._jobs.qsize()

    def enqueue(self, job: QueueJob) -> bool:
        """Admit ``job`` to the back of the queue without waiting.

        Jobs whose identifier fails validation are logged and dropped.
        Must be called from the event loop thread.

        Returns
        -------
        bool
            ``True`` if the job was queued, ``False`` if it was rejected.

        """
        try:
            validate_identifier(job.identifier)
        except InvalidJobIdentifierError as exc:
            self._event_logger.log_job_rejected(self.script_key, exc)
            return False

        self._jobs.put_nowait(job)
        self._event_logger.log_job_queued(
            self.script_key, job.identifier, self._jobs.qsize()
        )
        self._ensure_worker()
        return True

    async def wait_idle(self) -> None:
        """Wait until every queued job has finished."""
        await self._jobs.join()

    async def aclose(self) -> None:
        """Stop the drain task, terminating any running process."""
        worker, self._worker = self._worker, None
        if worker is None:
            return
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(
                self._drain(), name=f"herald-queue:{self._script.name}"
            )

    async def _drain(self) -> None:
        while True:
            job = await self._jobs.get()
            self._running = job
            try:
                outcome = await self._run(job)
            except Exception as exc:  # noqa: BLE001 - the next job must still run
                log_exception(logger, f"Job {job.identifier} crashed", exc)
                outcome = JobOutcome(
                    job=job,
                    exit_code=None,
                    error=ExternalProcessError.crashed(self.script_key, exc),
                )
            finally:
                self._running = None
                self._jobs.task_done()
            if self._on_outcome is not None:
                self._notify(self._on_outcome, outcome)
            if self._jobs.empty():
                self._event_logger.log_queue_idle(self.script_key)
                if self._on_idle is not None:
                    self._notify(self._on_idle, self.script_key)

    def _notify[T](self, hook: cabc.Callable[[T], object], value: T) -> None:
        try:
            hook(value)
        except Exception as exc:  # noqa: BLE001
            log_exception(logger, f"Queue hook failed for {self.script_key}", exc)

    async def _run(self, job: QueueJob) -> JobOutcome:
        self._event_logger.log_job_started(self.script_key, job.identifier)
        try:
            process = await asyncio.create_subprocess_exec(
                str(self._script),
                job.identifier,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except OSError as exc:
            self._event_logger.log_spawn_failed(self.script_key, job.identifier, exc)
            return JobOutcome(
                job=job,
                exit_code=None,
                error=ExternalProcessError.spawn_failed(self.script_key, exc),
            )

        # The next job may only start once this process has exited.
        try:
            await asyncio.gather(
                self._pump("out", process.stdout),
                self._pump("err", process.stderr),
            )
        except BaseException:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            raise
        finally:
            exit_code = await process.wait()

        self._event_logger.log_job_exited(self.script_key, job.identifier, exit_code)
        error = (
            None
            if exit_code == 0
            else ExternalProcessError.non_zero_exit(self.script_key, exit_code)
        )
        return JobOutcome(job=job, exit_code=exit_code, error=error)

    async def _pump(self, stream: str, reader: asyncio.StreamReader | None) -> None:
        if reader is None:
            return
        while True:
            try:
                raw = await reader.readline()
            except ValueError:
                # readline drops the buffered part of an over-long line.
                log_warning(
                    logger,
                    "Discarded %s line over %d bytes from %s",
                    stream,
                    _STREAM_LIMIT,
                    self.script_key,
                )
                continue
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if line:
                self._observe(stream, line)

    def _observe(self, stream: str, line: str) -> None:
        try:
            self._output_observer(stream, line)
        except Exception as exc:  # noqa: BLE001
            log_exception(logger, f"Output observer failed for {self.script_key}", exc)


__all__ = [
    "ExecutionQueue",
    "IdleHook",
    "JobOutcome",
    "OutcomeHook",
    "OutputObserver",
    "QueueJob",
    "validate_identifier",
]

