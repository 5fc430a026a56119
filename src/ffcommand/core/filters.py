"""Filter graph compilation.

Turns structured filter specifications into the textual syntax ffmpeg
expects for `-filter:a`, `-filter:v` and `-filter_complex`.

A filter specification is either a raw string (passed through untouched),
a `FilterSpec`, or a mapping with the same keys:

    {"filter": "scale", "options": {"w": 100, "h": 200}}
    -> "scale=w=100:h=200"

    {"filter": "overlay", "inputs": ["0:v", "logo"], "outputs": "out"}
    -> "[0:v][logo]overlay[out]"
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

# Characters that force an option value to be quoted
_ESCAPE_PATTERN = re.compile(r"[,:=' ]")


@dataclass
class FilterSpec:
    """Structured description of one filter in a chain or graph.

    Attributes:
        filter: Filter name (e.g., "scale", "split", "concat").
        options: None, a scalar, a positional list or a keyed mapping.
        inputs: Input pad name(s), with or without brackets.
        outputs: Output pad name(s), with or without brackets.
    """

    filter: str
    options: Any = None
    inputs: str | list[str] | None = None
    outputs: str | list[str] | None = None

    def copy(self) -> FilterSpec:
        """Return a copy whose option container is not shared."""
        options = self.options
        if isinstance(options, dict):
            options = dict(options)
        elif isinstance(options, list):
            options = list(options)
        return FilterSpec(
            filter=self.filter,
            options=options,
            inputs=self.inputs,
            outputs=self.outputs,
        )


FilterLike = Union[str, FilterSpec, Mapping[str, Any]]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_filter_option(value: Any) -> str:
    """Render a filter option value, quoting it when needed.

    Values containing a comma, colon, equals sign, single quote or space
    are wrapped in single quotes, with embedded quotes written as '\\''.

    Args:
        value: Option value (string, number or boolean).

    Returns:
        Text safe to embed in a filter description.
    """
    text = _stringify(value)
    if _ESCAPE_PATTERN.search(text):
        return "'" + text.replace("'", "'\\\\''") + "'"
    return text


def normalize_stream_spec(name: str) -> str:
    """Return `name` wrapped in exactly one pair of brackets."""
    match = re.fullmatch(r"\[?(.*?)\]?", name)
    inner = match.group(1) if match else name
    return f"[{inner}]"


def _pads(value: str | list[str] | tuple[str, ...] | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        value = [value]
    return "".join(normalize_stream_spec(pad) for pad in value)


def _as_spec(spec: FilterSpec | Mapping[str, Any]) -> FilterSpec:
    if isinstance(spec, FilterSpec):
        return spec
    return FilterSpec(
        filter=spec["filter"],
        options=spec.get("options"),
        inputs=spec.get("inputs"),
        outputs=spec.get("outputs"),
    )


def compile_filter(spec: FilterLike) -> str:
    """Compile a single filter specification into one token.

    Args:
        spec: Raw string, FilterSpec or mapping.

    Returns:
        `[in]...name=options[out]...` text.
    """
    if isinstance(spec, str):
        return spec

    spec = _as_spec(spec)
    text = _pads(spec.inputs) + spec.filter

    options = spec.options
    if options is not None:
        if isinstance(options, Mapping):
            rendered = ":".join(
                f"{key}={escape_filter_option(value)}"
                for key, value in options.items()
            )
        elif isinstance(options, (list, tuple)):
            rendered = ":".join(escape_filter_option(value) for value in options)
        else:
            rendered = escape_filter_option(options)
        text += "=" + rendered

    return text + _pads(spec.outputs)


def make_filter_strings(specs: Iterable[FilterLike]) -> list[str]:
    """Compile every specification in `specs`, preserving order."""
    return [compile_filter(spec) for spec in specs]


def join_filter_graph(specs: Iterable[FilterLike]) -> str:
    """Compile `specs` and join them into a `;`-separated filter graph."""
    return ";".join(make_filter_strings(specs))
