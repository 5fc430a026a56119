"""ffprobe invocation."""

from __future__ import annotations

import logging
import shutil
import signal
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any

from ffcommand.errors import ProbeError
from ffcommand.introspector.parsers import parse_ffprobe_output

logger = logging.getLogger(__name__)

# Options that select an ffprobe output writer
_WRITER_OPTIONS = frozenset(("-of", "-print_format", "-output_format"))

_COPY_CHUNK_SIZE = 65536


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


def _feed_stdin(source: IO[bytes], stdin: IO[bytes]) -> None:
    """Copy a stream source into ffprobe's stdin."""
    try:
        shutil.copyfileobj(source, stdin, _COPY_CHUNK_SIZE)
    except (BrokenPipeError, ConnectionResetError):
        # ffprobe stops reading once it has seen enough
        pass
    except OSError as e:
        logger.warning("Error feeding ffprobe stdin: %s", e)
    finally:
        try:
            stdin.close()
        except OSError:
            pass


def _read_all(pipe: IO[bytes], sink: list[bytes]) -> None:
    for chunk in iter(lambda: pipe.read(_COPY_CHUNK_SIZE), b""):
        sink.append(chunk)


def probe(
    source: str | Path | IO[bytes],
    *,
    ffprobe_path: str | Path,
    extra_options: Sequence[str] = (),
    is_stream: bool = False,
    timeout: float | None = None,
    cwd: str | Path | None = None,
) -> dict[str, Any]:
    """Run ffprobe on a file, URL or readable stream.

    Args:
        source: Path or URL to probe, or a readable binary stream.
        ffprobe_path: Path to the ffprobe executable.
        extra_options: Additional ffprobe options.
        is_stream: True when `source` is a stream to pipe through stdin.
        timeout: Maximum run time in seconds.
        cwd: Working directory relative paths are resolved against.

    Returns:
        Parsed probe data (see parse_ffprobe_output).

    Raises:
        ProbeError: If ffprobe cannot run, fails or times out.
    """
    args: list[str] = [str(ffprobe_path), "-show_streams", "-show_format"]
    if not _WRITER_OPTIONS.intersection(extra_options):
        args += ["-of", "default"]
    args += [str(opt) for opt in extra_options]
    args.append("pipe:0" if is_stream else str(source))

    logger.debug("Executing command: %s", " ".join(args))

    try:
        process = subprocess.Popen(  # nosec B603 - args are built above
            args,
            stdin=subprocess.PIPE if is_stream else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise ProbeError(f"Could not run ffprobe: {e}") from e

    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    threads = [
        threading.Thread(
            target=_read_all, args=(process.stdout, stdout_chunks), daemon=True
        ),
        threading.Thread(
            target=_read_all, args=(process.stderr, stderr_chunks), daemon=True
        ),
    ]
    if is_stream:
        threads.append(
            threading.Thread(
                target=_feed_stdin, args=(source, process.stdin), daemon=True
            )
        )
    for thread in threads:
        thread.start()

    try:
        returncode = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired as e:
        process.kill()
        process.wait()
        raise ProbeError(f"ffprobe timed out after {timeout}s") from e
    finally:
        for thread in threads:
            thread.join(timeout=5.0)

    stdout = b"".join(stdout_chunks).decode("utf-8", errors="replace")
    stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace")

    if returncode < 0:
        raise ProbeError(f"ffprobe was killed with signal {_signal_name(returncode)}")
    if returncode != 0:
        raise ProbeError(f"ffprobe exited with code {returncode}\n{stderr}")

    return parse_ffprobe_output(stdout)
