"""FFmpeg progress and error parsing utilities.

This module parses the periodic status lines ffmpeg writes to stderr
while encoding:

    frame=  120 fps= 30 q=28.0 size=     512kB time=00:00:04.00 bitrate=1048.6kbits/s

and extracts a readable error message from a failed run's stderr.
"""

import re
from dataclasses import dataclass

from ffcommand.core.timemarks import timemark_to_seconds

_EQUALS_SPACING = re.compile(r"=\s+")
_LEADING_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?")
_ERROR_LINE = re.compile(r"error|invalid|unknown", re.IGNORECASE)


@dataclass
class ProgressEvent:
    """Parsed ffmpeg progress line."""

    frames: int | None = None
    current_fps: int | None = None
    current_kbps: float | None = None
    target_size: int | None = None
    timemark: str | None = None
    percent: int | None = None


def parse_progress_line(line: str) -> dict[str, str] | None:
    """Split a stderr line into its `key=value` pairs.

    Args:
        line: A line from ffmpeg stderr.

    Returns:
        Mapping of keys to raw values, or None if any space-separated part
        is not a `key=value` pair.
    """
    line = _EQUALS_SPACING.sub("=", line.strip())
    if not line:
        return None

    progress: dict[str, str] = {}
    for part in line.split(" "):
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep:
            return None
        progress[key] = value
    return progress


def _leading_int(value: str | None) -> int | None:
    if value is None:
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return int(float(match.group(0)))


def _leading_float(value: str | None) -> float | None:
    if value is None:
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return float(match.group(0))


def extract_progress(
    line: str, duration: float | None = None
) -> ProgressEvent | None:
    """Build a ProgressEvent from a stderr line.

    Args:
        line: A line from ffmpeg stderr.
        duration: Total input duration in seconds, when known.

    Returns:
        ProgressEvent, or None if the line is not a progress line.
    """
    progress = parse_progress_line(line)
    if not progress or "time" not in progress:
        return None

    event = ProgressEvent(
        frames=_leading_int(progress.get("frame")),
        current_fps=_leading_int(progress.get("fps")),
        current_kbps=_leading_float(progress.get("bitrate")),
        target_size=_leading_int(progress.get("size") or progress.get("Lsize")),
        timemark=progress["time"],
    )

    if duration and duration > 0:
        try:
            seconds = timemark_to_seconds(event.timemark)
        except ValueError:
            seconds = None
        if seconds is not None:
            event.percent = round(seconds / duration * 100)

    return event


def extract_error(stderr: str) -> str:
    """Return the error-looking lines of ffmpeg stderr.

    Lines mentioning "error", "invalid" or "unknown" (any case) are kept;
    when none match, "Unknown error" is returned.
    """
    lines = [line for line in stderr.splitlines() if _ERROR_LINE.search(line)]
    if not lines:
        return "Unknown error"
    return "\n".join(lines)
