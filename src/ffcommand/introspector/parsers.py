"""Parsing functions for ffprobe output.

ffprobe's default writer prints sections as bracketed blocks of
`key=value` lines:

    [STREAM]
    index=0
    codec_name=h264
    DISPOSITION:default=1
    TAG:language=eng
    [/STREAM]
    [FORMAT]
    duration=10.000000
    [/FORMAT]
"""

import re
from typing import Any

_NUMBER_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_KEY_VALUE_PATTERN = re.compile(r"^([^=]+)=(.*)$")

_TAG_PREFIX = "TAG:"
_DISPOSITION_PREFIX = "DISPOSITION:"


def _convert_value(key: str, value: str) -> Any:
    """Convert numeric-looking values, leaving tag values as text."""
    if key.startswith(_TAG_PREFIX) or not _NUMBER_PATTERN.match(value):
        return value
    if "." in value:
        return float(value)
    return int(value)


def _fold_key(block: dict[str, Any], key: str, value: Any) -> None:
    if key.startswith(_TAG_PREFIX):
        block.setdefault("tags", {})[key[len(_TAG_PREFIX) :]] = value
    elif key.startswith(_DISPOSITION_PREFIX):
        block.setdefault("disposition", {})[key[len(_DISPOSITION_PREFIX) :]] = value
    else:
        block[key] = value


def _parse_block(lines: list[str], start: int, name: str) -> tuple[dict, int]:
    """Parse lines until the closing `[/name]` marker.

    Returns:
        Tuple of (block data, index of the line after the block).
    """
    block: dict[str, Any] = {}
    closing = f"[/{name}]"
    index = start
    while index < len(lines):
        line = lines[index]
        index += 1
        if line.lower() == closing:
            break
        # Nested sections (side data, program streams) are flattened
        if line.startswith("["):
            continue
        match = _KEY_VALUE_PATTERN.match(line)
        if match:
            key, value = match.groups()
            _fold_key(block, key, _convert_value(key, value))
    return block, index


def parse_ffprobe_output(text: str) -> dict[str, Any]:
    """Parse ffprobe default-format output.

    Args:
        text: Output of `ffprobe -show_streams -show_format -of default`.

    Returns:
        Dictionary with "streams" (list), "format" (dict) and "chapters"
        (list). Numeric values become int or float; TAG: and DISPOSITION:
        keys are folded into nested "tags" and "disposition" dicts.
    """
    lines = [line for line in re.split(r"\r\n|\r|\n", text) if line]
    data: dict[str, Any] = {"streams": [], "format": {}, "chapters": []}

    index = 0
    while index < len(lines):
        marker = lines[index].lower()
        index += 1
        if marker.startswith("[stream"):
            block, index = _parse_block(lines, index, "stream")
            data["streams"].append(block)
        elif marker.startswith("[chapter"):
            block, index = _parse_block(lines, index, "chapter")
            data["chapters"].append(block)
        elif marker == "[format]":
            data["format"], index = _parse_block(lines, index, "format")

    return data


def get_duration(data: dict[str, Any]) -> float | None:
    """Return the format duration in seconds, if ffprobe reported one."""
    duration = data.get("format", {}).get("duration")
    if isinstance(duration, (int, float)):
        return float(duration)
    return None


def best_video_stream(data: dict[str, Any]) -> dict[str, Any] | None:
    """Return the video stream with the largest frame area, if any."""
    best: dict[str, Any] | None = None
    best_area = -1
    for stream in data.get("streams", []):
        if stream.get("codec_type") != "video":
            continue
        width = stream.get("width")
        height = stream.get("height")
        area = 0
        if isinstance(width, int) and isinstance(height, int):
            area = width * height
        if area > best_area:
            best, best_area = stream, area
    return best
