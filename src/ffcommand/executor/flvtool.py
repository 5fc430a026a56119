"""FLV metadata post-processing with flvmeta or flvtool2."""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - only used for TimeoutExpired
from pathlib import Path

from ffcommand.core.subprocess_utils import run_command
from ffcommand.errors import ProcessError

logger = logging.getLogger(__name__)

# Metadata injection rewrites the whole file; allow for large outputs
FLVTOOL_TIMEOUT = 600


def update_flv_metadata(
    flvtool_path: Path, target: Path, cwd: str | Path | None = None
) -> None:
    """Run `flvtool -U <target>` to inject onMetaData into an FLV file.

    Args:
        flvtool_path: Path to flvmeta or flvtool2.
        target: FLV file produced by ffmpeg.
        cwd: Working directory the target path is relative to.

    Raises:
        ProcessError: If the tool fails or times out.
    """
    logger.info("Updating FLV metadata for %s", target)
    try:
        _stdout, stderr, rc = run_command(
            [flvtool_path, "-U", target], timeout=FLVTOOL_TIMEOUT, cwd=cwd
        )
    except subprocess.TimeoutExpired as e:
        raise ProcessError(f"flvtool timed out updating {target}") from e
    except OSError as e:
        raise ProcessError(f"Could not run flvtool: {e}") from e

    if rc != 0:
        raise ProcessError(
            f"Error running {flvtool_path.name} on {target}: {stderr.strip()}",
            returncode=rc,
            stderr=stderr,
        )
