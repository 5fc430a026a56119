"""Input codec information parsed from the ffmpeg stderr header.

Before encoding starts, ffmpeg describes every input:

    Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'input.mp4':
      Duration: 00:00:10.00, start: 0.000000, bitrate: 1205 kb/s
        Stream #0:0(und): Video: h264 (High), yuv420p, 1280x720, 25 fps
        Stream #0:1(und): Audio: aac (LC), 44100 Hz, stereo, fltp
    Output #0, mp4, to 'output.mp4':

CodecDataParser consumes stderr lines one at a time and yields the
collected description once the first "Output #" line is reached.
"""

import re
from dataclasses import dataclass, field

_INPUT_PATTERN = re.compile(r"Input #(\d+), ([^, ]+).*, from '.*':")
_DURATION_PATTERN = re.compile(r"Duration: ([^,]+)")
_STREAM_PATTERN = re.compile(r"Stream #(\d+):(\d+)[^:]*: (Video|Audio): (.*)$")


@dataclass
class StreamDescriptor:
    """One audio or video stream of an input."""

    type: str
    details: str


@dataclass
class CodecInput:
    """Description of one input."""

    format: str
    duration: str | None = None
    streams: list[StreamDescriptor] = field(default_factory=list)

    @property
    def audio(self) -> StreamDescriptor | None:
        """First audio stream, if any."""
        return next((s for s in self.streams if s.type == "audio"), None)

    @property
    def video(self) -> StreamDescriptor | None:
        """First video stream, if any."""
        return next((s for s in self.streams if s.type == "video"), None)


@dataclass
class CodecData:
    """Codec information for every input of a job."""

    inputs: list[CodecInput] = field(default_factory=list)


class CodecDataParser:
    """Incremental parser for the input header of ffmpeg stderr."""

    def __init__(self) -> None:
        self._inputs: list[CodecInput] = []
        self._done = False

    @property
    def done(self) -> bool:
        """True once the "Output #" marker has been seen."""
        return self._done

    def feed(self, line: str) -> CodecData | None:
        """Consume one stderr line.

        Returns:
            CodecData on the first "Output #" line when at least one input
            was described, None otherwise.
        """
        if self._done:
            return None

        if line.startswith("Output #"):
            self._done = True
            if not self._inputs:
                return None
            return CodecData(inputs=self._inputs)

        match = _INPUT_PATTERN.search(line)
        if match:
            self._inputs.append(CodecInput(format=match.group(2)))
            return None

        if not self._inputs:
            return None
        current = self._inputs[-1]

        match = _DURATION_PATTERN.search(line)
        if match and line.lstrip().startswith("Duration:"):
            current.duration = match.group(1).strip()
            return None

        match = _STREAM_PATTERN.search(line)
        if match and line.lstrip().startswith("Stream #"):
            current.streams.append(
                StreamDescriptor(type=match.group(3).lower(), details=match.group(4))
            )
        return None
