"""External tool integration.

Locates ffmpeg, ffprobe and flvtool, caches the capabilities of the local
ffmpeg build and parses its progress and header output.
"""

from ffcommand.tools.cache import CapabilityCache, get_default_cache
from ffcommand.tools.capabilities import check_capabilities
from ffcommand.tools.codec_data import (
    CodecData,
    CodecDataParser,
    CodecInput,
    StreamDescriptor,
)
from ffcommand.tools.ffmpeg_progress import (
    ProgressEvent,
    extract_error,
    extract_progress,
    parse_progress_line,
)
from ffcommand.tools.models import (
    CodecInfo,
    EncoderInfo,
    FFmpegVersion,
    FilterInfo,
    FormatInfo,
    StreamKind,
)

__all__ = [
    "CapabilityCache",
    "CodecData",
    "CodecDataParser",
    "CodecInfo",
    "CodecInput",
    "EncoderInfo",
    "FFmpegVersion",
    "FilterInfo",
    "FormatInfo",
    "ProgressEvent",
    "StreamDescriptor",
    "StreamKind",
    "check_capabilities",
    "extract_error",
    "extract_progress",
    "get_default_cache",
    "parse_progress_line",
]
