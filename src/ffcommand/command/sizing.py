"""Output size filters.

Translates the size, aspect and padding requests recorded on an output into
the scale/pad filter chain that realises them. Supported size requests:

- "NN%": scale both dimensions by a ratio
- "WxH": fixed size (letterboxed with pad when autopad is enabled)
- "Wx?" / "?xH": one fixed dimension, the other derived from the aspect
  ratio when one is set, or from the input otherwise
"""

from __future__ import annotations

import math
import re
from typing import Any

from ffcommand.core.filters import FilterSpec
from ffcommand.core.timemarks import format_number, round_even
from ffcommand.errors import ConfigurationError

_FIXED_SIZE = re.compile(r"([0-9]+)x([0-9]+)")
_FIXED_WIDTH = re.compile(r"([0-9]+)x\?")
_FIXED_HEIGHT = re.compile(r"\?x([0-9]+)")
_PERCENT = re.compile(r"\b([0-9]{1,3})%")
_RATIO = re.compile(r"^(\d+):(\d+)$")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_aspect(aspect: str | int | float) -> float:
    """Parse an aspect ratio given as a number or an "N:M" string.

    Raises:
        ConfigurationError: If the value is neither.
    """
    if isinstance(aspect, (int, float)) and not isinstance(aspect, bool):
        return float(aspect)
    try:
        return float(aspect)
    except (TypeError, ValueError):
        pass
    match = _RATIO.match(str(aspect))
    if not match:
        raise ConfigurationError(f"Invalid aspect ratio: {aspect}")
    return int(match.group(1)) / int(match.group(2))


def scale_pad_filters(
    width: int, height: int, aspect: float, color: str
) -> list[FilterSpec]:
    """Scale into a WxH box keeping the input aspect, then pad to the box."""
    a = format_number(aspect)
    return [
        FilterSpec(
            filter="scale",
            options={
                "w": f"if(gt(a,{a}),{width},trunc({height}*a/2)*2)",
                "h": f"if(lt(a,{a}),{height},trunc({width}/a/2)*2)",
            },
        ),
        FilterSpec(
            filter="pad",
            options={
                "w": width,
                "h": height,
                "x": f"if(gt(a,{a}),0,({width}-iw)/2)",
                "y": f"if(lt(a,{a}),0,({height}-ih)/2)",
                "color": color,
            },
        ),
    ]


def compute_size_filters(size_data: dict[str, Any]) -> list[FilterSpec]:
    """Compute the size filter chain for an output.

    Args:
        size_data: Mapping with optional "size", "aspect" (float) and
            "pad" (color string, or False when padding is disabled).

    Returns:
        List of FilterSpec, empty when no size was requested.

    Raises:
        ConfigurationError: If the size request is not understood.
    """
    size = size_data.get("size")
    if size is None:
        return []

    size = str(size)
    pad = size_data.get("pad")
    fixed_size = _FIXED_SIZE.search(size)
    fixed_width = _FIXED_WIDTH.search(size)
    fixed_height = _FIXED_HEIGHT.search(size)
    percent = _PERCENT.search(size)

    if percent:
        ratio = format_number(int(percent.group(1)) / 100)
        return [
            FilterSpec(
                filter="scale",
                options={
                    "w": f"trunc(iw*{ratio}/2)*2",
                    "h": f"trunc(ih*{ratio}/2)*2",
                },
            )
        ]

    if fixed_size:
        width = round_even(int(fixed_size.group(1)))
        height = round_even(int(fixed_size.group(2)))
        if pad:
            return scale_pad_filters(width, height, width / height, pad)
        return [FilterSpec(filter="scale", options={"w": width, "h": height})]

    if fixed_width or fixed_height:
        if "aspect" in size_data:
            aspect = size_data["aspect"]
            if fixed_width:
                width = int(fixed_width.group(1))
                height = _round_half_up(width / aspect)
            else:
                height = int(fixed_height.group(1))
                width = _round_half_up(height * aspect)
            width = round_even(width)
            height = round_even(height)
            if pad:
                return scale_pad_filters(width, height, aspect, pad)
            return [FilterSpec(filter="scale", options={"w": width, "h": height})]

        if fixed_width:
            return [
                FilterSpec(
                    filter="scale",
                    options={
                        "w": round_even(int(fixed_width.group(1))),
                        "h": "trunc(ow/a/2)*2",
                    },
                )
            ]
        return [
            FilterSpec(
                filter="scale",
                options={
                    "w": "trunc(oh*a/2)*2",
                    "h": round_even(int(fixed_height.group(1))),
                },
            )
        ]

    raise ConfigurationError(f"Invalid size specified: {size}")


def keep_dar_filters() -> list[FilterSpec]:
    """Filters converting non-square pixels to square ones."""
    return [
        FilterSpec(
            filter="scale",
            options={
                "w": "if(gt(sar,1),iw*sar,iw)",
                "h": "if(lt(sar,1),ih/sar,ih)",
            },
        ),
        FilterSpec(filter="setsar", options="1"),
    ]
