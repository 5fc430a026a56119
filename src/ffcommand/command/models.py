"""Data model for command inputs and outputs."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Union

from ffcommand.core.options import OptionList

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", IO[bytes]]

_URL_PATTERN = re.compile(r"^[a-zA-Z]+://")
_PIPE_PATTERN = re.compile(r"^pipe:")


def is_stream_like(value: Any) -> bool:
    """True for objects that look like binary streams rather than paths."""
    if isinstance(value, (str, bytes, os.PathLike)):
        return False
    return hasattr(value, "read") or hasattr(value, "write")


def is_file_source(value: Any) -> bool:
    """True for path-like sources that name a local file.

    Strings naming a URL ("http://...") or a pipe ("pipe:0") are not files.
    """
    if isinstance(value, os.PathLike):
        return True
    if isinstance(value, str):
        return not (_URL_PATTERN.match(value) or _PIPE_PATTERN.match(value))
    return False


@dataclass
class Input:
    """One ffmpeg input.

    Attributes:
        source: Path, URL or readable binary stream.
        is_stream: True when `source` is piped through stdin.
        is_file: True when `source` names a local file.
        options: Options placed before this input's `-i`.
    """

    source: Source
    is_stream: bool = False
    is_file: bool = False
    options: OptionList = field(default_factory=OptionList)

    @classmethod
    def from_source(cls, source: Source) -> Input:
        """Classify `source` and wrap it."""
        if is_stream_like(source):
            return cls(source=source, is_stream=True)
        return cls(source=source, is_file=is_file_source(source))

    def clone(self) -> Input:
        """Copy sharing the source but not the option list."""
        return Input(
            source=self.source,
            is_stream=self.is_stream,
            is_file=self.is_file,
            options=self.options.clone(),
        )

    @property
    def argument(self) -> str:
        """Token used after `-i`."""
        if self.is_stream:
            return "pipe:0"
        return os.fspath(self.source)  # type: ignore[arg-type]


@dataclass
class Output:
    """One ffmpeg output and every option list scoped to it."""

    target: Source | None = None
    is_file: bool = False
    is_stream: bool = False
    end_stream: bool = True
    options: OptionList = field(default_factory=OptionList)
    audio: OptionList = field(default_factory=OptionList)
    video: OptionList = field(default_factory=OptionList)
    audio_filters: OptionList = field(default_factory=OptionList)
    video_filters: OptionList = field(default_factory=OptionList)
    size_filters: OptionList = field(default_factory=OptionList)
    flags: dict[str, Any] = field(default_factory=dict)
    size_data: dict[str, Any] = field(default_factory=dict)

    def set_target(self, target: Source, *, end: bool = True) -> None:
        """Attach a path, URL or writable stream to this output."""
        self.target = target
        if is_stream_like(target):
            self.is_stream = True
            self.is_file = False
            self.end_stream = end
        else:
            self.is_stream = False
            self.is_file = is_file_source(target)

    def has_content(self) -> bool:
        """True when any option or filter was set on this output."""
        return any(
            len(options)
            for options in (
                self.options,
                self.audio,
                self.video,
                self.audio_filters,
                self.video_filters,
                self.size_filters,
            )
        )

    @property
    def argument(self) -> str:
        """Token naming this output on the command line."""
        if self.target is None:
            return "-"
        if self.is_stream:
            return "pipe:1"
        return os.fspath(self.target)  # type: ignore[arg-type]

    @property
    def path(self) -> Path | None:
        """Local file path of this output, if it is a file."""
        if not self.is_file or self.target is None:
            return None
        return Path(os.fspath(self.target))  # type: ignore[arg-type]

    def clone_options(self) -> Output:
        """Copy with cloned option lists, size data and flags, and no target."""
        return Output(
            options=self.options.clone(),
            audio=self.audio.clone(),
            video=self.video.clone(),
            audio_filters=self.audio_filters.clone(),
            video_filters=self.video_filters.clone(),
            size_filters=self.size_filters.clone(),
            flags=dict(self.flags),
            size_data=dict(self.size_data),
        )

    def clone(self) -> Output:
        """Copy keeping the target, with cloned option lists."""
        copy = self.clone_options()
        copy.target = self.target
        copy.is_file = self.is_file
        copy.is_stream = self.is_stream
        copy.end_stream = self.end_stream
        return copy


@dataclass(frozen=True)
class JobPlan:
    """Inputs, outputs and arguments of one job, frozen when it starts.

    The capability check and the spawned process both read this plan, so
    later changes to the Command affect neither.
    """

    inputs: list[Input]
    outputs: list[Output]
    arguments: list[str]

    def close_streams(self) -> None:
        """Close stream targets owned by the job (end_stream set)."""
        for output in self.outputs:
            if output.is_stream and output.end_stream and output.target is not None:
                try:
                    output.target.close()  # type: ignore[union-attr]
                except OSError as e:
                    logger.debug("Error closing output stream: %s", e)
