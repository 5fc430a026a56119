"""Data models for ffmpeg capabilities.

This module defines dataclasses describing what the installed ffmpeg build
supports, as parsed from its listing commands (-formats, -codecs,
-encoders, -filters, -version).
"""

from dataclasses import dataclass
from enum import Enum


class StreamKind(Enum):
    """Kind of media carried by a codec, encoder or filter pad."""

    AUDIO = "audio"
    VIDEO = "video"
    SUBTITLE = "subtitle"
    NONE = "none"


@dataclass
class FormatInfo:
    """Container format capabilities (from ffmpeg -formats)."""

    description: str
    can_demux: bool = False
    can_mux: bool = False


@dataclass
class CodecInfo:
    """Codec capabilities (from ffmpeg -codecs).

    Attributes:
        type: Media kind (audio, video, subtitle).
        description: Human readable description.
        can_decode: A decoder is available.
        can_encode: An encoder is available.
        intra_frame_only: Intra-frame only codec (modern listing).
        is_lossy: Codec supports lossy compression (modern listing).
        is_lossless: Codec supports lossless compression (modern listing).
        draw_horiz_band: Supports draw_horiz_band (legacy listing).
        direct_rendering: Supports direct rendering (legacy listing).
        weird_frame_truncation: Supports frame truncation (legacy listing).
    """

    type: StreamKind
    description: str
    can_decode: bool = False
    can_encode: bool = False
    intra_frame_only: bool = False
    is_lossy: bool = False
    is_lossless: bool = False
    draw_horiz_band: bool = False
    direct_rendering: bool = False
    weird_frame_truncation: bool = False


@dataclass
class EncoderInfo:
    """Encoder capabilities (from ffmpeg -encoders)."""

    type: StreamKind
    description: str
    frame_mt: bool = False
    slice_mt: bool = False
    experimental: bool = False
    draw_horiz_band: bool = False
    direct_rendering_method_1: bool = False


@dataclass
class FilterInfo:
    """Filter capabilities (from ffmpeg -filters)."""

    description: str
    input: StreamKind
    multiple_inputs: bool
    output: StreamKind
    multiple_outputs: bool


@dataclass(frozen=True)
class FFmpegVersion:
    """Parsed ffmpeg version (from ffmpeg -version)."""

    major: int
    minor: int
    patch: int | None
    full: str

    def as_tuple(self) -> tuple[int, ...]:
        """Return the version as a comparable tuple."""
        return (self.major, self.minor, self.patch or 0)

    def __str__(self) -> str:
        return self.full
