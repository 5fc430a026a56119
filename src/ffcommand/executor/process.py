"""ffmpeg process orchestration.

ProcessOrchestrator runs one ffmpeg invocation to completion: it spawns the
process, feeds a stream input into stdin, copies stdout to a stream output,
parses stderr for codec information and progress, enforces the timeout and
finally turns the exit status into a JobResult or an exception.
"""

from __future__ import annotations

import codecs
import logging
import os
import queue
import signal
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Protocol

from ffcommand.core.ring import Ring
from ffcommand.errors import FFCommandError, JobTimeoutError, ProcessError
from ffcommand.executor.flvtool import update_flv_metadata
from ffcommand.tools.cache import CapabilityCache
from ffcommand.tools.codec_data import CodecDataParser
from ffcommand.tools.ffmpeg_progress import extract_error, extract_progress

if TYPE_CHECKING:
    from ffcommand.command.models import Input, Output

logger = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 4096


class EventSink(Protocol):
    """Receiver of job events."""

    def emit(self, event: str, *args: object) -> None: ...


@dataclass
class JobResult:
    """Outcome of a successful job.

    Attributes:
        returncode: ffmpeg exit status (None when killed on request).
        stdout: Retained standard output lines.
        stderr: Retained standard error lines.
        argv: Full command line that was executed.
        killed: True when the job ended because kill() was called.
    """

    returncode: int | None
    stdout: str
    stderr: str
    argv: list[str] = field(default_factory=list)
    killed: bool = False


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


class ProcessControl:
    """Handle used to kill a process that may not have been spawned yet.

    A kill requested before spawn is applied as soon as the process is
    attached. Requests after the first are ignored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._process: subprocess.Popen[bytes] | None = None
        self._requested_signal: str | None = None
        self._internal = False

    @property
    def kill_requested(self) -> bool:
        """True when a caller asked for the process to be killed."""
        return self._requested_signal is not None and not self._internal

    def attach(self, process: subprocess.Popen[bytes]) -> None:
        with self._lock:
            self._process = process
            pending = self._requested_signal
        if pending is not None:
            self._send(process, pending)

    def kill(self, sig: str = "SIGKILL", *, internal: bool = False) -> bool:
        """Request termination of the process.

        Args:
            sig: Signal name to deliver.
            internal: True for kills issued by the orchestrator itself
                (timeout, stream errors), which do not count as a
                successful caller-requested termination.

        Returns:
            True if this call was the first kill request.
        """
        with self._lock:
            if self._requested_signal is not None:
                return False
            self._requested_signal = sig
            self._internal = internal
            process = self._process
        if process is not None:
            self._send(process, sig)
        return True

    @staticmethod
    def _send(process: subprocess.Popen[bytes], sig: str) -> None:
        if process.poll() is not None:
            return
        try:
            if sig == "SIGKILL" or os.name != "posix":
                process.kill()
            else:
                process.send_signal(signal.Signals[sig])
        except ProcessLookupError:
            pass


class _Latch:
    """Holds the first terminal failure; later ones are ignored."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.error: FFCommandError | None = None

    def set(self, error: FFCommandError) -> bool:
        with self._lock:
            if self.error is not None:
                return False
            self.error = error
            return True


class ProcessOrchestrator:
    """Spawn ffmpeg and supervise it until it exits.

    Args:
        cache: Capability cache used to resolve executables.
        cwd: Working directory for the process.
        timeout: Maximum run time in seconds (None = no limit).
        niceness: Priority adjustment applied through nice(1) on POSIX.
        stdout_lines: Lines of stdout/stderr retained (0 = unlimited).
        poll_interval: Seconds between timeout/exit checks.
    """

    # Max time to wait for reader threads after the process exits
    STREAM_DRAIN_TIMEOUT = 5.0

    def __init__(
        self,
        cache: CapabilityCache,
        *,
        cwd: str | Path | None = None,
        timeout: float | None = None,
        niceness: int = 0,
        stdout_lines: int = 100,
        poll_interval: float = 0.1,
    ) -> None:
        self.cache = cache
        self.cwd = cwd
        self.timeout = timeout
        self.niceness = niceness
        self.stdout_lines = stdout_lines
        self.poll_interval = poll_interval

    def build_command(self, args: Sequence[str]) -> list[str]:
        """Prefix `args` with the ffmpeg path and, if needed, nice(1)."""
        cmd = [str(self.cache.get_ffmpeg_path()), *args]
        if self.niceness and os.name == "posix":
            cmd = ["nice", "-n", str(self.niceness), *cmd]
        return cmd

    def execute(
        self,
        args: Sequence[str],
        *,
        inputs: Sequence[Input],
        outputs: Sequence[Output],
        events: EventSink,
        duration: float | None = None,
        control: ProcessControl | None = None,
    ) -> JobResult:
        """Run ffmpeg with `args` and wait for it to finish.

        Args:
            args: ffmpeg arguments (without the executable).
            inputs: Command inputs; a stream input is piped into stdin.
            outputs: Command outputs; a stream output receives stdout.
            events: Receiver for start, codec_data, progress and stderr.
            duration: Input duration in seconds, for progress percentages.
            control: Kill handle shared with the owning Job.

        Returns:
            JobResult on success or caller-requested termination.

        Raises:
            ToolNotFoundError: If ffmpeg cannot be located.
            JobTimeoutError: If the timeout expired.
            ProcessError: If ffmpeg failed or a stream could not be copied.
        """
        control = control or ProcessControl()
        cmd = self.build_command(args)

        stream_input = next((i for i in inputs if i.is_stream), None)
        stream_output = next((o for o in outputs if o.is_stream), None)

        stdout_ring = Ring(self.stdout_lines)
        stderr_ring = Ring(self.stdout_lines)
        latch = _Latch()

        codec_parser = CodecDataParser()

        def handle_line(line: str) -> None:
            if not codec_parser.done:
                codec_data = codec_parser.feed(line)
                if codec_data is not None:
                    events.emit("codec_data", codec_data)
            else:
                progress = extract_progress(line, duration)
                if progress is not None:
                    events.emit("progress", progress)
            events.emit("stderr", line)

        stderr_ring.callback(handle_line)

        logger.info("Spawning ffmpeg: %s", " ".join(cmd))
        events.emit("start", list(cmd))

        try:
            process = subprocess.Popen(  # nosec B603 - args assembled by Command
                cmd,
                stdin=subprocess.PIPE if stream_input else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as e:
            raise ProcessError(f"Could not spawn ffmpeg: {e}") from e

        control.attach(process)

        stderr_queue: queue.Queue[str | None] = queue.Queue()

        def read_stderr() -> None:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            try:
                pipe = process.stderr
                assert pipe is not None
                for chunk in iter(lambda: pipe.read1(_READ_CHUNK_SIZE), b""):
                    text = decoder.decode(chunk)
                    if text:
                        stderr_queue.put(text)
                tail = decoder.decode(b"", final=True)
                if tail:
                    stderr_queue.put(tail)
            except (ValueError, OSError) as e:
                logger.debug("Stderr reader stopped: %s", e)
            finally:
                stderr_queue.put(None)

        def read_stdout() -> None:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            target: IO[bytes] | None = None
            if stream_output is not None:
                target = stream_output.target  # type: ignore[assignment]
            try:
                pipe = process.stdout
                assert pipe is not None
                for chunk in iter(lambda: pipe.read1(_READ_CHUNK_SIZE), b""):
                    if target is not None:
                        target.write(chunk)
                    else:
                        stdout_ring.append(decoder.decode(chunk))
                if target is not None:
                    target.flush()
            except (BrokenPipeError, ConnectionResetError) as e:
                if not control.kill_requested and latch.set(
                    ProcessError(f"Output stream error: {e}")
                ):
                    control.kill(internal=True)
            except (ValueError, OSError) as e:
                logger.debug("Stdout reader stopped: %s", e)
            finally:
                if target is not None and stream_output.end_stream:
                    try:
                        target.close()
                    except OSError as e:
                        logger.debug("Error closing output stream: %s", e)

        def feed_stdin() -> None:
            assert process.stdin is not None and stream_input is not None
            source: IO[bytes] = stream_input.source  # type: ignore[assignment]
            try:
                while True:
                    try:
                        chunk = source.read(_READ_CHUNK_SIZE)
                    except Exception as e:
                        if not control.kill_requested and latch.set(
                            ProcessError(f"Input stream error: {e}")
                        ):
                            control.kill(internal=True)
                        return
                    if not chunk:
                        break
                    process.stdin.write(chunk)
            except (BrokenPipeError, ConnectionResetError):
                # ffmpeg closed its end of the pipe
                pass
            except (ValueError, OSError) as e:
                logger.debug("Stdin feeder stopped: %s", e)
            finally:
                try:
                    process.stdin.close()
                except OSError:
                    pass

        stderr_thread = threading.Thread(target=read_stderr, daemon=True)
        stdout_thread = threading.Thread(target=read_stdout, daemon=True)
        threads = [stderr_thread, stdout_thread]
        if stream_input is not None:
            threads.append(threading.Thread(target=feed_stdin, daemon=True))
        for thread in threads:
            thread.start()

        start_time = time.monotonic()
        stderr_done = False

        while True:
            if (
                self.timeout is not None
                and latch.error is None
                and not control.kill_requested
                and time.monotonic() - start_time >= self.timeout
            ):
                logger.warning("ffmpeg timed out after %s seconds", self.timeout)
                if latch.set(JobTimeoutError("ffmpeg process timed out")):
                    control.kill(internal=True)

            if stderr_done:
                if process.poll() is not None:
                    break
                time.sleep(self.poll_interval)
                continue

            try:
                text = stderr_queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            if text is None:
                stderr_done = True
                continue
            stderr_ring.append(text)

        process.wait()
        for thread in threads[1:]:
            thread.join(timeout=self.STREAM_DRAIN_TIMEOUT)
            if thread.is_alive():
                logger.error("Stream thread did not terminate; abandoning it")

        stdout_ring.close()
        stderr_ring.close()

        returncode = process.returncode
        stdout_text = stdout_ring.get()
        stderr_text = stderr_ring.get()

        logger.info(
            "ffmpeg exited",
            extra={
                "returncode": returncode,
                "elapsed_seconds": round(time.monotonic() - start_time, 3),
            },
        )

        if latch.error is not None:
            error = latch.error
            if isinstance(error, ProcessError):
                error.returncode = returncode
                error.stdout = stdout_text
                error.stderr = stderr_text
            raise error

        if control.kill_requested:
            logger.info("ffmpeg was killed on request")
            return JobResult(
                returncode=None if returncode < 0 else returncode,
                stdout=stdout_text,
                stderr=stderr_text,
                argv=cmd,
                killed=True,
            )

        if returncode != 0:
            if returncode < 0:
                sig = _signal_name(returncode)
                message = (
                    f"ffmpeg was killed with signal {sig}: {extract_error(stderr_text)}"
                )
                raise ProcessError(
                    message,
                    signal_name=sig,
                    stdout=stdout_text,
                    stderr=stderr_text,
                )
            raise ProcessError(
                f"ffmpeg exited with code {returncode}: {extract_error(stderr_text)}",
                returncode=returncode,
                stdout=stdout_text,
                stderr=stderr_text,
            )

        for output in outputs:
            if output.flags.get("flvmeta") and output.path is not None:
                update_flv_metadata(
                    self.cache.get_flvtool_path(),
                    output.path,
                    cwd=self.cwd,
                )

        return JobResult(
            returncode=returncode,
            stdout=stdout_text,
            stderr=stderr_text,
            argv=cmd,
        )
