"""Background job handle."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable

from ffcommand.errors import FFCommandError
from ffcommand.executor.process import EventSink, JobResult, ProcessControl
from ffcommand.logging.context import job_context

logger = logging.getLogger(__name__)

_job_counter = itertools.count(1)

JobRunner = Callable[[ProcessControl], JobResult]


class Job:
    """A command running in a background thread.

    The runner receives the job's ProcessControl and returns a JobResult
    or raises. Exactly one of the "end" or "error" events is emitted.

    Example:
        job = command.output("out.mp4").run()
        result = job.wait()
    """

    def __init__(
        self,
        runner: JobRunner,
        events: EventSink,
        job_id: str | None = None,
    ) -> None:
        self.job_id = job_id or f"J{next(_job_counter):04d}"
        self._runner = runner
        self._events = events
        self._control = ProcessControl()
        self._thread = threading.Thread(
            target=self._run, name=f"ffcommand-{self.job_id}", daemon=True
        )
        self._done = threading.Event()
        self._result: JobResult | None = None
        self._error: BaseException | None = None

    def start(self) -> Job:
        """Start the job thread. Returns self for chaining."""
        self._thread.start()
        return self

    def _run(self) -> None:
        with job_context(self.job_id):
            try:
                try:
                    self._result = self._runner(self._control)
                except FFCommandError as e:
                    logger.error("Job failed: %s", e)
                    self._error = e
                except Exception as e:
                    logger.exception("Job failed unexpectedly")
                    self._error = e

                if self._error is not None:
                    self._events.emit("error", self._error)
                else:
                    self._events.emit("end", self._result)
            finally:
                self._done.set()

    @property
    def running(self) -> bool:
        """True while the job thread is alive."""
        return self._thread.is_alive() and not self._done.is_set()

    @property
    def done(self) -> bool:
        """True once the job reached a terminal state."""
        return self._done.is_set()

    @property
    def result(self) -> JobResult | None:
        """Result of a successful job, or None."""
        return self._result

    @property
    def error(self) -> BaseException | None:
        """Terminal error of a failed job, or None."""
        return self._error

    def wait(self, timeout: float | None = None) -> JobResult:
        """Block until the job finishes.

        Args:
            timeout: Maximum seconds to wait (None = forever).

        Returns:
            JobResult of the finished job.

        Raises:
            TimeoutError: If the job is still running after `timeout`.
            FFCommandError: The job's terminal error, if it failed.
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"Job {self.job_id} still running")
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    def kill(self, sig: str = "SIGKILL") -> None:
        """Kill the ffmpeg process. Later calls have no effect."""
        if self._done.is_set():
            return
        if self._control.kill(sig):
            logger.info("Killing job %s with %s", self.job_id, sig)
