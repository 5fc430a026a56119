"""Media metadata introspection through ffprobe."""

from ffcommand.introspector.ffprobe import probe
from ffcommand.introspector.parsers import (
    best_video_stream,
    get_duration,
    parse_ffprobe_output,
)

__all__ = [
    "best_video_stream",
    "get_duration",
    "parse_ffprobe_output",
    "probe",
]
