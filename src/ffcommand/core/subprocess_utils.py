"""Short-lived helper processes.

ffmpeg is queried for its version and capability tables, and flvmeta is run
on finished FLV files. These calls are quick, produce little output and are
run to completion with a timeout, unlike the supervised ffmpeg jobs in
ffcommand.executor.process.
"""

from __future__ import annotations

import logging
import os
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import time
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 120.0


class ToolOutput(NamedTuple):
    """Decoded output of a finished helper process."""

    stdout: str
    stderr: str
    returncode: int


def run_command(
    args: list[str | Path],
    timeout: float = DEFAULT_TOOL_TIMEOUT,
    cwd: str | Path | None = None,
) -> ToolOutput:
    """Run a helper process to completion.

    Output is decoded as UTF-8; undecodable bytes are replaced.

    Args:
        args: Executable and arguments; paths are converted with os.fspath.
        timeout: Seconds before the process is killed.
        cwd: Working directory for the process.

    Returns:
        ToolOutput(stdout, stderr, returncode).

    Raises:
        subprocess.TimeoutExpired: If the process outlived `timeout`.
        OSError: If the executable cannot be started.

    Example:
        >>> out = run_command(["ffmpeg", "-hide_banner", "-encoders"], timeout=10)
        >>> out.returncode
        0
    """
    argv = [os.fspath(arg) for arg in args]
    tool = Path(argv[0]).name

    started = time.monotonic()
    try:
        result = subprocess.run(  # nosec B603 - argv built by ffcommand
            argv,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "%s timed out after %ss",
            tool,
            timeout,
            extra={"tool": tool, "timeout_seconds": timeout},
        )
        raise

    logger.debug(
        "%s %s finished",
        tool,
        " ".join(argv[1:]),
        extra={
            "tool": tool,
            "returncode": result.returncode,
            "elapsed_seconds": round(time.monotonic() - started, 3),
        },
    )
    return ToolOutput(result.stdout or "", result.stderr or "", result.returncode)
