"""Unit tests for the per-script execution queue."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from herald.execution import (
    ExecutionQueue,
    InvalidJobIdentifierError,
    JobOutcome,
    QueueJob,
    validate_identifier,
)
from tests.helpers.pipeline import write_script

if typ.TYPE_CHECKING:
    from pathlib import Path

IDENTIFIERS = ("aaaaaaaa", "bbbbbbbb", "cccccccc")

_MARKING_SCRIPT = """#!/bin/sh
echo "$1 start" >> "{log}"
sleep 0.05
echo "$1 end" >> "{log}"
"""


def _marking_script(directory: Path, name: str = "deploy.sh") -> tuple[Path, Path]:
    log = directory / f"{name}.log"
    script = write_script(directory, name, _MARKING_SCRIPT.format(log=log))
    return script, log


class TestValidateIdentifier:
    """Tests for validate_identifier."""

    @pytest.mark.parametrize("identifier", ["0", "deadbeef", "a" * 40])
    def test_accepts_lowercase_hex(self, identifier: str) -> None:
        """Lowercase hexadecimal identifiers pass unchanged."""
        assert validate_identifier(identifier) == identifier

    @pytest.mark.parametrize(
        "identifier",
        ["", "DEADBEEF", "deadbeefg", "abc; rm -rf /", "--help", " abc", None, 42],
    )
    def test_rejects_anything_else(self, identifier: object) -> None:
        """Empty, non-hex and non-string identifiers are rejected."""
        with pytest.raises(InvalidJobIdentifierError):
            validate_identifier(identifier)


class TestOrdering:
    """Jobs for one script run one at a time in arrival order."""

    async def test_jobs_never_overlap(self, script_dir: Path) -> None:
        """Each job finishes before the next one starts."""
        script, log = _marking_script(script_dir)
        queue = ExecutionQueue(script)

        for identifier in IDENTIFIERS:
            assert queue.enqueue(QueueJob(identifier)) is True
        await queue.wait_idle()

        assert log.read_text().splitlines() == [
            f"{identifier} {mark}"
            for identifier in IDENTIFIERS
            for mark in ("start", "end")
        ]

    async def test_jobs_queued_while_running_wait_their_turn(
        self, script_dir: Path
    ) -> None:
        """A job queued mid-run starts only after the running job exits."""
        script, log = _marking_script(script_dir)
        queue = ExecutionQueue(script)

        queue.enqueue(QueueJob(IDENTIFIERS[0]))
        await asyncio.sleep(0.01)
        queue.enqueue(QueueJob(IDENTIFIERS[1]))
        await queue.wait_idle()

        assert log.read_text().splitlines() == [
            "aaaaaaaa start",
            "aaaaaaaa end",
            "bbbbbbbb start",
            "bbbbbbbb end",
        ]

    async def test_separate_queues_run_concurrently(self, script_dir: Path) -> None:
        """Two scripts' queues do not wait for each other."""
        first, first_log = _marking_script(script_dir, "first.sh")
        second, second_log = _marking_script(script_dir, "second.sh")
        queues = [ExecutionQueue(first), ExecutionQueue(second)]

        for queue in queues:
            queue.enqueue(QueueJob(IDENTIFIERS[0]))
        await asyncio.gather(*(queue.wait_idle() for queue in queues))

        assert first_log.read_text().splitlines() == [
            "aaaaaaaa start",
            "aaaaaaaa end",
        ]
        assert second_log.read_text() == first_log.read_text()


class TestFailures:
    """Failing jobs are reported and never stall the queue."""

    async def test_non_zero_exit_does_not_block_queue(
        self, script_dir: Path
    ) -> None:
        """A failing run is followed by the next queued job."""
        log = script_dir / "runs.log"
        script = write_script(
            script_dir,
            "flaky.sh",
            f'#!/bin/sh\necho "$1" >> "{log}"\n[ "$1" != "aaaaaaaa" ]\n',
        )
        outcomes: list[JobOutcome] = []
        queue = ExecutionQueue(script, on_outcome=outcomes.append)

        queue.enqueue(QueueJob("aaaaaaaa"))
        queue.enqueue(QueueJob("bbbbbbbb"))
        await queue.wait_idle()

        assert log.read_text().splitlines() == ["aaaaaaaa", "bbbbbbbb"]
        assert [outcome.exit_code for outcome in outcomes] == [1, 0]
        assert outcomes[0].error is not None
        assert outcomes[0].error.exit_code == 1
        assert outcomes[1].succeeded

    async def test_spawn_failure_reported(self, script_dir: Path) -> None:
        """A script that cannot be executed yields an outcome without exit code."""
        script = script_dir / "missing.sh"
        outcomes: list[JobOutcome] = []
        queue = ExecutionQueue(script, on_outcome=outcomes.append)

        queue.enqueue(QueueJob("aaaaaaaa"))
        queue.enqueue(QueueJob("bbbbbbbb"))
        await queue.wait_idle()

        assert [outcome.exit_code for outcome in outcomes] == [None, None]
        assert all(outcome.error is not None for outcome in outcomes)
        assert not outcomes[0].succeeded

    async def test_invalid_identifier_never_spawns(self, script_dir: Path) -> None:
        """Rejected jobs are dropped before any process is started."""
        script, log = _marking_script(script_dir)
        queue = ExecutionQueue(script)

        assert queue.enqueue(QueueJob("not a commit")) is False
        assert queue.enqueue(QueueJob("")) is False

        assert queue.pending == 0
        assert queue.running is None
        assert not log.exists()

    async def test_failing_hook_does_not_stop_queue(self, script_dir: Path) -> None:
        """An exception from an outcome hook is logged and the queue continues."""
        script, log = _marking_script(script_dir)

        def broken(_outcome: JobOutcome) -> None:
            msg = "hook broke"
            raise RuntimeError(msg)

        queue = ExecutionQueue(script, on_outcome=broken)
        queue.enqueue(QueueJob("aaaaaaaa"))
        queue.enqueue(QueueJob("bbbbbbbb"))
        await queue.wait_idle()

        assert len(log.read_text().splitlines()) == 4


class TestObservers:
    """Output lines and idle transitions reach their observers."""

    async def test_output_lines_streamed(self, script_dir: Path) -> None:
        """Stdout and stderr lines arrive tagged with their stream."""
        script = write_script(
            script_dir,
            "talk.sh",
            '#!/bin/sh\necho "deploying $1"\necho\necho "warning" >&2\n',
        )
        lines: list[tuple[str, str]] = []
        queue = ExecutionQueue(
            script, output_observer=lambda stream, line: lines.append((stream, line))
        )

        queue.enqueue(QueueJob("abc123"))
        await queue.wait_idle()

        assert sorted(lines) == [("err", "warning"), ("out", "deploying abc123")]

    async def test_idle_hook_fires_when_drained(self, script_dir: Path) -> None:
        """on_idle is called once the last queued job finishes."""
        script, _ = _marking_script(script_dir)
        idle: list[str] = []
        queue = ExecutionQueue(script, on_idle=idle.append)

        queue.enqueue(QueueJob("aaaaaaaa"))
        queue.enqueue(QueueJob("bbbbbbbb"))
        await queue.wait_idle()

        assert idle == [queue.script_key]

    async def test_aclose_stops_running_process(self, script_dir: Path) -> None:
        """Closing the queue kills the running process."""
        script = write_script(script_dir, "slow.sh", "#!/bin/sh\nexec sleep 5\n")
        queue = ExecutionQueue(script)

        queue.enqueue(QueueJob("aaaaaaaa"))
        await asyncio.sleep(0.1)
        assert queue.running == QueueJob("aaaaaaaa")

        await asyncio.wait_for(queue.aclose(), timeout=2)

        assert queue.running is None


class TestOutputFailures:
    """Output handling problems never let runs of one script overlap."""

    async def test_overlong_output_line(self, script_dir: Path) -> None:
        """A line beyond the stream limit is dropped and the queue continues."""
        log = script_dir / "noisy.log"
        script = write_script(
            script_dir,
            "noisy.sh",
            f'#!/bin/sh\necho "$1 start" >> "{log}"\n'
            "head -c 2000000 /dev/zero | tr '\\0' x\n"
            'sleep 0.2\necho\necho "after $1"\n'
            f'echo "$1 end" >> "{log}"\n',
        )
        lines: list[tuple[str, str]] = []
        queue = ExecutionQueue(
            script, output_observer=lambda stream, line: lines.append((stream, line))
        )

        queue.enqueue(QueueJob("aaaaaaaa"))
        await asyncio.sleep(0.1)
        queue.enqueue(QueueJob("bbbbbbbb"))
        await asyncio.wait_for(queue.wait_idle(), timeout=10)

        assert log.read_text().splitlines() == [
            "aaaaaaaa start",
            "aaaaaaaa end",
            "bbbbbbbb start",
            "bbbbbbbb end",
        ]
        assert ("out", "after aaaaaaaa") in lines
        assert ("out", "after bbbbbbbb") in lines

    async def test_raising_output_observer(self, script_dir: Path) -> None:
        """An observer that raises does not stop or overlap the runs."""
        script = write_script(
            script_dir,
            "talk.sh",
            _MARKING_SCRIPT.format(log=script_dir / "talk.log").replace(
                "sleep 0.05", 'echo "working on $1"\nsleep 0.05'
            ),
        )
        log = script_dir / "talk.log"

        def broken(_stream: str, _line: str) -> None:
            msg = "observer broke"
            raise RuntimeError(msg)

        outcomes: list[JobOutcome] = []
        queue = ExecutionQueue(
            script, output_observer=broken, on_outcome=outcomes.append
        )

        for identifier in IDENTIFIERS:
            queue.enqueue(QueueJob(identifier))
        await asyncio.wait_for(queue.wait_idle(), timeout=5)

        assert log.read_text().splitlines() == [
            f"{identifier} {mark}"
            for identifier in IDENTIFIERS
            for mark in ("start", "end")
        ]
        assert [outcome.exit_code for outcome in outcomes] == [0, 0, 0]
        assert queue.running is None
