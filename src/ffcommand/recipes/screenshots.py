"""Thumbnail extraction.

All screenshots are taken by a single ffmpeg run: the input is seeked to
the first timemark, the video is optionally resized and then split into
one branch per timemark, and each branch is written as one frame with an
output seek relative to the first mark.

Filename patterns may contain these tokens:

- %s: timemark in seconds
- %w, %h, %r: screenshot width, height and "WxH"
- %f, %b: input file name, with and without extension
- %i: 1-based index; %00i zero-pads it to three digits
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from ffcommand.core.filters import FilterSpec
from ffcommand.core.timemarks import (
    format_number,
    is_percent_timemark,
    round_even,
    timemark_to_seconds,
)
from ffcommand.errors import ConfigurationError, ProbeError
from ffcommand.introspector.parsers import best_video_stream

if TYPE_CHECKING:
    from ffcommand.command.command import Command
    from ffcommand.executor.job import Job

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "tn.png"

_SIZE_PATTERN = re.compile(r"^(\d+x\d+|\d+x\?|\?x\d+|\d+%)$")
_FIXED_SIZE = re.compile(r"^(\d+)x(\d+)$")
_FIXED_WIDTH = re.compile(r"^(\d+)x\?$")
_FIXED_HEIGHT = re.compile(r"^\?x(\d+)$")
_PERCENT_SIZE = re.compile(r"^(\d+)%$")
_VARIABLE_TOKEN = re.compile(r"%(s|0*i)")
_INDEX_TOKEN = re.compile(r"%(0*)i")
_NAME_TOKEN = re.compile(r"%[bf]")
_SIZE_TOKEN = re.compile(r"%[whr]")

Timemark = int | float | str


class ScreenshotOptions(BaseModel):
    """Screenshot settings.

    Attributes:
        count: Number of evenly spaced screenshots (ignored when
            timemarks are given).
        folder: Output folder, created if missing.
        filename: Filename pattern (see module docstring).
        timemarks: Seconds, "[[hh:]mm:]ss[.xxx]" strings or "NN%" strings.
            Also accepted as "timestamps".
        size: "WxH", "Wx?", "?xH" or "NN%".
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    count: int | None = Field(default=None, ge=0)
    folder: str = "."
    filename: str = DEFAULT_FILENAME
    timemarks: list[Timemark] | None = Field(
        default=None, validation_alias=AliasChoices("timemarks", "timestamps")
    )
    size: str | None = None

    @field_validator("folder", mode="before")
    @classmethod
    def _folder_to_str(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("size")
    @classmethod
    def _check_size(cls, value: str | None) -> str | None:
        if value is not None and not _SIZE_PATTERN.match(value):
            raise ValueError(f"Invalid size parameter: {value}")
        return value


def _coerce_options(config: Any, folder: str | Path | None) -> ScreenshotOptions:
    if isinstance(config, ScreenshotOptions):
        if folder is not None and "folder" not in config.model_fields_set:
            return config.model_copy(update={"folder": os.fspath(folder)})
        return config

    if config is None:
        data: dict[str, Any] = {"count": 1}
    elif isinstance(config, int) and not isinstance(config, bool):
        data = {"count": config}
    elif isinstance(config, Mapping):
        data = dict(config)
    else:
        raise ConfigurationError(f"Invalid screenshot configuration: {config!r}")

    if "folder" not in data and folder is not None:
        data["folder"] = os.fspath(folder)

    try:
        return ScreenshotOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid screenshot configuration: {e}") from e


class _Metadata:
    """Probe the first input at most once."""

    def __init__(self, command: Command) -> None:
        self._command = command
        self._data: dict[str, Any] | None = None

    def get(self) -> dict[str, Any]:
        if self._data is None:
            self._data = self._command.ffprobe(0)
        return self._data

    def video_stream(self, purpose: str) -> dict[str, Any]:
        stream = best_video_stream(self.get())
        if stream is None or not stream.get("width") or not stream.get("height"):
            raise ProbeError(f"No video stream in input, cannot {purpose}")
        return stream


def plan_timemarks(options: ScreenshotOptions) -> list[Timemark]:
    """Return the requested timemarks, deriving them from the count if needed.

    Raises:
        ConfigurationError: If neither a count nor timemarks were given.
    """
    if options.timemarks:
        return list(options.timemarks)
    if not options.count:
        raise ConfigurationError(
            "Cannot take screenshots: neither a count nor a timemark list "
            "are specified"
        )
    interval = 100 / (options.count + 1)
    return [f"{format_number(interval * (i + 1))}%" for i in range(options.count)]


def resolve_timemarks(
    marks: list[Timemark], command: Command, metadata: _Metadata
) -> list[float]:
    """Resolve percentages against the input duration; sort in seconds.

    Raises:
        ConfigurationError: If percentages are used with a stream input.
        ProbeError: If the duration cannot be determined.
    """
    if any(is_percent_timemark(mark) for mark in marks):
        if command.inputs[0].is_stream:
            raise ConfigurationError(
                "Cannot compute screenshot timemarks with an input stream, "
                "please specify fixed timemarks"
            )

        stream = metadata.video_stream("take screenshots")
        duration = stream.get("duration")
        if not isinstance(duration, (int, float)):
            duration = metadata.get().get("format", {}).get("duration")
        if not isinstance(duration, (int, float)):
            raise ProbeError(
                "Could not get input duration, please specify fixed timemarks"
            )

        marks = [
            duration * float(str(mark)[:-1]) / 100
            if is_percent_timemark(mark)
            else mark
            for mark in marks
        ]

    return sorted(timemark_to_seconds(mark) for mark in marks)


def _screenshot_size(size: str | None, metadata: _Metadata) -> tuple[int, int]:
    if size and (fixed := _FIXED_SIZE.match(size)):
        return int(fixed.group(1)), int(fixed.group(2))

    stream = metadata.video_stream("replace %w, %h or %r")
    width: float = stream["width"]
    height: float = stream["height"]

    if size and (fixed_width := _FIXED_WIDTH.match(size)):
        height = height * int(fixed_width.group(1)) / width
        width = int(fixed_width.group(1))
    elif size and (fixed_height := _FIXED_HEIGHT.match(size)):
        width = width * int(fixed_height.group(1)) / height
        height = int(fixed_height.group(1))
    elif size and (percent := _PERCENT_SIZE.match(size)):
        width = width * int(percent.group(1)) / 100
        height = height * int(percent.group(1)) / 100

    return round_even(width), round_even(height)


def _pad_index(index: int, padding: str) -> str:
    text = str(index)
    return padding[: max(0, len(padding) + 1 - len(text))] + text


def expand_filenames(
    options: ScreenshotOptions,
    timemarks: list[float],
    command: Command,
    metadata: _Metadata,
) -> list[str]:
    """Expand the filename pattern once per timemark.

    Raises:
        ConfigurationError: If %f or %b is used with a stream input.
        ProbeError: If %w, %h or %r needs a resolution that cannot be probed.
    """
    pattern = options.filename or DEFAULT_FILENAME
    if "." not in pattern:
        pattern += ".png"

    if len(timemarks) > 1 and not _VARIABLE_TOKEN.search(pattern):
        root, ext = os.path.splitext(pattern)
        pattern = f"{root}_%i{ext}"

    if _NAME_TOKEN.search(pattern):
        source = command.inputs[0]
        if source.is_stream:
            raise ConfigurationError(
                "Cannot replace %f or %b when using an input stream"
            )
        name = os.path.basename(os.fspath(source.source))  # type: ignore[arg-type]
        pattern = pattern.replace("%f", name).replace(
            "%b", os.path.splitext(name)[0]
        )

    if _SIZE_TOKEN.search(pattern):
        width, height = _screenshot_size(options.size, metadata)
        pattern = (
            pattern.replace("%r", "%wx%h")
            .replace("%w", str(width))
            .replace("%h", str(height))
        )

    return [
        _INDEX_TOKEN.sub(
            lambda m, i=i: _pad_index(i + 1, m.group(1)),
            pattern.replace("%s", format_number(mark)),
        )
        for i, mark in enumerate(timemarks)
    ]


def _create_folder(folder: str, cwd: str | Path | None) -> None:
    path = Path(folder)
    if cwd is not None and not path.is_absolute():
        path = Path(cwd) / path
    path.mkdir(parents=True, exist_ok=True)


def take_screenshots(
    command: Command, config: Any = None, folder: str | Path | None = None
) -> Job:
    """Plan and run a screenshot job on the command's first input.

    Args:
        command: Command with at least one input.
        config: Screenshot count, mapping or ScreenshotOptions
            (default: one screenshot).
        folder: Output folder when `config` does not name one.

    Returns:
        The started Job.

    Raises:
        ConfigurationError: If the configuration is invalid.
        ProbeError: If required metadata cannot be probed.
    """
    options = _coerce_options(config, folder)
    if not command.inputs:
        raise ConfigurationError("No input specified")

    metadata = _Metadata(command)
    timemarks = resolve_timemarks(plan_timemarks(options), command, metadata)
    filenames = expand_filenames(options, timemarks, command, metadata)

    command.emit("filenames", filenames)
    _create_folder(options.folder, command.cwd)
    logger.debug("Taking %d screenshots into %s", len(filenames), options.folder)

    count = len(timemarks)
    split = FilterSpec(filter="split", options=count, outputs=[])
    filters: list[FilterSpec] = [split]

    if options.size:
        command.size(options.size)
        output = command.current_output
        size_filters = [spec.copy() for spec in output.size_filters]
        for i, spec in enumerate(size_filters):
            if i > 0:
                spec.inputs = f"size{i - 1}"
            spec.outputs = f"size{i}"
        split.inputs = f"size{len(size_filters) - 1}"
        filters = size_filters + filters
        output.size_filters.clear()

    first_mark = timemarks[0]
    command.seek_input(first_mark)
    for i, (mark, filename) in enumerate(zip(timemarks, filenames)):
        stream = f"screen{i}"
        split.outputs.append(stream)  # type: ignore[union-attr]
        command.output(os.path.join(options.folder, filename)).frames(1).map(stream)
        if i > 0:
            command.seek(mark - first_mark)

    command.complex_filter(filters)
    return command.run()
