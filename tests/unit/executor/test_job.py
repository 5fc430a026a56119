"""Tests for the background Job handle."""

import re
import threading
import time

import pytest

from ffcommand.errors import ProcessError
from ffcommand.executor.job import Job
from ffcommand.executor.process import JobResult
from ffcommand.logging.context import get_job_id


class EventLog:
    """Records event names and arguments."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple]] = []

    def emit(self, event: str, *args: object) -> None:
        self.events.append((event, args))


def _result(**kwargs) -> JobResult:
    return JobResult(returncode=0, stdout="", stderr="", **kwargs)


class TestJobLifecycle:
    """Tests for start(), wait() and terminal events."""

    def test_success(self):
        """A successful runner emits end and wait() returns its result."""
        events = EventLog()
        expected = _result()

        job = Job(lambda control: expected, events).start()

        assert job.wait(timeout=5) is expected
        assert job.done
        assert not job.running
        assert job.result is expected
        assert events.events == [("end", (expected,))]

    def test_failure(self):
        """A failing runner emits error and wait() re-raises."""
        events = EventLog()
        error = ProcessError("ffmpeg exited with code 1: boom")

        def runner(control):
            raise error

        job = Job(runner, events).start()

        with pytest.raises(ProcessError, match="boom"):
            job.wait(timeout=5)
        assert job.error is error
        assert events.events == [("error", (error,))]

    def test_unexpected_exception(self):
        """Non-library exceptions are also reported as errors."""
        events = EventLog()

        def runner(control):
            raise RuntimeError("bug")

        job = Job(runner, events).start()

        with pytest.raises(RuntimeError, match="bug"):
            job.wait(timeout=5)
        assert events.events[0][0] == "error"

    def test_wait_timeout(self):
        """wait() raises TimeoutError while the job is still running."""
        release = threading.Event()

        def runner(control):
            release.wait(5)
            return _result()

        job = Job(runner, EventLog()).start()
        try:
            with pytest.raises(TimeoutError, match=job.job_id):
                job.wait(timeout=0.01)
            assert job.running
        finally:
            release.set()
        job.wait(timeout=5)

    def test_job_ids(self):
        """Generated ids are sequential and zero-padded."""
        first = Job(lambda control: _result(), EventLog())
        second = Job(lambda control: _result(), EventLog())

        assert re.fullmatch(r"J\d{4}", first.job_id)
        assert int(second.job_id[1:]) == int(first.job_id[1:]) + 1
        assert Job(lambda control: _result(), EventLog(), job_id="X").job_id == "X"

    def test_runner_sees_job_context(self):
        """Code inside the runner sees the job id in its logging context."""
        seen = []

        def runner(control):
            seen.append(get_job_id())
            return _result()

        job = Job(runner, EventLog()).start()
        job.wait(timeout=5)

        assert seen == [job.job_id]


class TestJobKill:
    """Tests for Job.kill()."""

    def test_kill_reaches_control(self):
        """kill() is forwarded to the runner's ProcessControl."""
        started = threading.Event()

        def runner(control):
            started.set()
            while not control.kill_requested:
                time.sleep(0.01)
            return _result(killed=True)

        job = Job(runner, EventLog()).start()
        started.wait(5)
        job.kill("SIGTERM")

        assert job.wait(timeout=5).killed is True

    def test_kill_is_idempotent(self):
        """Only the first kill is forwarded."""
        job = Job(lambda control: _result(), EventLog())

        job.kill()
        job.kill("SIGTERM")

        assert job._control.kill("SIGINT") is False

    def test_kill_after_done_is_noop(self):
        """Killing a finished job does nothing."""
        job = Job(lambda control: _result(), EventLog()).start()
        job.wait(timeout=5)

        job.kill()

        assert not job._control.kill_requested
