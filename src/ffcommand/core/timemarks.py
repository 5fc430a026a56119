"""Timemark and number helpers."""

from __future__ import annotations

import math
import re

_PERCENT_PATTERN = re.compile(r"^[\d.]+%$")


def timemark_to_seconds(mark: str | int | float) -> float:
    """Convert a timemark to seconds.

    Accepts plain numbers, decimal strings ("12.5") and
    `[[hh:]mm:]ss[.xxx]` strings.

    Args:
        mark: Timemark to convert.

    Returns:
        Number of seconds.

    Raises:
        ValueError: If a component is not numeric.

    Example:
        >>> timemark_to_seconds("01:02:03.5")
        3723.5
    """
    if isinstance(mark, (int, float)) and not isinstance(mark, bool):
        return mark

    mark = str(mark).strip()
    if ":" not in mark and "." in mark:
        return float(mark)

    parts = mark.split(":")
    seconds = float(parts.pop())
    if parts:
        seconds += int(parts.pop()) * 60
    if parts:
        seconds += int(parts.pop()) * 3600
    return seconds


def is_percent_timemark(mark: object) -> bool:
    """Return True if `mark` is a percentage string such as "50%"."""
    return isinstance(mark, str) and bool(_PERCENT_PATTERN.match(mark))


def format_number(value: int | float) -> str:
    """Render a number without a trailing ".0" for integral floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def round_even(value: float) -> int:
    """Round to the nearest even integer, halves rounding up."""
    return int(math.floor(value / 2 + 0.5)) * 2
