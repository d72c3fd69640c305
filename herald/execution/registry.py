"""Per-script execution queues and the handles subscribers call.

The registry maps each ScriptKey (the script path) to exactly one
:class:`ExecutionQueue`, created on first use and kept for the life of the
process. Queues for different scripts drain concurrently; jobs for one
script run strictly in order.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ
from pathlib import Path

from .observability import ExecutionEventLogger
from .queue import ExecutionQueue, OutcomeHook, OutputObserver, QueueJob

if typ.TYPE_CHECKING:
    from herald.webhooks.models import NormalizedEvent

type OutputObserverFactory = cabc.Callable[[Path], OutputObserver]


class ScriptHandle:
    """Callable bound to one script's queue.

    Subscriber modules pass the handle straight to ``notifier.subscribe``;
    calling it with an event enqueues a job for the event's commit.
    """

    def __init__(self, queue: ExecutionQueue) -> None:
        """Bind the handle to ``queue``."""
        self._queue = queue

    @property
    def script_key(self) -> str:
        """Return the key of the script this handle runs."""
        return self._queue.script_key

    def enqueue(self, job: QueueJob) -> bool:
        """Queue ``job``; see :meth:`ExecutionQueue.enqueue`."""
        return self._queue.enqueue(job)

    def __call__(self, event: NormalizedEvent) -> bool:
        """Queue a run for ``event`` with its commit as the identifier."""
        return self.enqueue(QueueJob(identifier=event.commit or "", payload=event))

    def __repr__(self) -> str:
        """Return a debugging representation naming the script."""
        return f"ScriptHandle({self.script_key!r})"


class ScriptQueueRegistry:
    """Own one :class:`ExecutionQueue` per script.

    Parameters
    ----------
    event_logger
        Structured logger shared by every queue.
    output_observer_factory
        Builds the output observer for a script. Defaults to the per-script
        DEBUG logger.
    on_outcome
        Hook passed to every queue, called with each finished job.

    """

    def __init__(
        self,
        *,
        event_logger: ExecutionEventLogger | None = None,
        output_observer_factory: OutputObserverFactory | None = None,
        on_outcome: OutcomeHook | None = None,
    ) -> None:
        """Initialise an empty registry."""
        self._event_logger = event_logger or ExecutionEventLogger()
        self._output_observer_factory = output_observer_factory
        self._on_outcome = on_outcome
        self._queues: dict[str, ExecutionQueue] = {}

    def __len__(self) -> int:
        """Return the number of script queues created so far."""
        return len(self._queues)

    def __contains__(self, script: object) -> bool:
        """Return whether a queue exists for ``script``."""
        return isinstance(script, str | Path) and str(script) in self._queues

    @property
    def queues(self) -> tuple[ExecutionQueue, ...]:
        """Return every queue in creation order."""
        return tuple(self._queues.values())

    def queue_for(self, script: Path | str) -> ExecutionQueue:
        """Return the queue for ``script``, creating it on first use."""
        path = Path(script)
        key = str(path)
        queue = self._queues.get(key)
        if queue is None:
            observer = (
                self._output_observer_factory(path)
                if self._output_observer_factory is not None
                else None
            )
            queue = ExecutionQueue(
                path,
                event_logger=self._event_logger,
                output_observer=observer,
                on_outcome=self._on_outcome,
            )
            self._queues[key] = queue
        return queue

    def handle_for(self, script: Path | str) -> ScriptHandle:
        """Return a :class:`ScriptHandle` bound to ``script``'s queue."""
        return ScriptHandle(self.queue_for(script))

    async def wait_idle(self) -> None:
        """Wait until every queue has drained."""
        await asyncio.gather(*(queue.wait_idle() for queue in self.queues))

    async def aclose(self) -> None:
        """Stop every queue's drain task."""
        await asyncio.gather(*(queue.aclose() for queue in self.queues))


__all__ = ["OutputObserverFactory", "ScriptHandle", "ScriptQueueRegistry"]
