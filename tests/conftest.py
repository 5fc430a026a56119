"""Shared test fixtures for ffcommand."""

import io
import os
import shutil
import signal
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from ffcommand.command import Command
from ffcommand.config.loader import clear_config_cache
from ffcommand.config.models import ToolPathsConfig
from ffcommand.executor.process import JobResult
from ffcommand.tools.cache import CapabilityCache
from ffcommand.tools.models import EncoderInfo, FormatInfo, StreamKind


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(temp_dir: Path):
    """Point configuration at a missing file and drop FFCOMMAND_* overrides.

    The fixture is autouse=True so no test picks up the developer's own
    ~/.ffcommand/config.toml or environment.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("FFCOMMAND_")}
    env["FFCOMMAND_CONFIG_PATH"] = str(temp_dir / "missing-config.toml")
    clear_config_cache()
    with patch.dict(os.environ, env, clear=True):
        yield
    clear_config_cache()


# =============================================================================
# Capability fixtures
# =============================================================================


@pytest.fixture
def fake_formats() -> dict[str, FormatInfo]:
    """Format table of a typical ffmpeg build."""
    return {
        "mp4": FormatInfo("MP4 (MPEG-4 Part 14)", can_demux=True, can_mux=True),
        "avi": FormatInfo("AVI (Audio Video Interleaved)", True, True),
        "flv": FormatInfo("FLV (Flash Video)", True, True),
        "m4v": FormatInfo("raw MPEG-4 video", True, True),
        "image2": FormatInfo("image2 sequence", True, True),
        "lavfi": FormatInfo("Libavfilter virtual input device", True, False),
        "null": FormatInfo("raw null video", False, True),
    }


@pytest.fixture
def fake_encoders() -> dict[str, EncoderInfo]:
    """Encoder table of a typical ffmpeg build."""
    return {
        "libx264": EncoderInfo(StreamKind.VIDEO, "libx264 H.264 / AVC"),
        "mpeg4": EncoderInfo(StreamKind.VIDEO, "MPEG-4 part 2"),
        "png": EncoderInfo(StreamKind.VIDEO, "PNG (Portable Network Graphics)"),
        "aac": EncoderInfo(StreamKind.AUDIO, "AAC (Advanced Audio Coding)"),
        "libmp3lame": EncoderInfo(StreamKind.AUDIO, "libmp3lame MP3"),
        "srt": EncoderInfo(StreamKind.SUBTITLE, "SubRip subtitle"),
    }


@pytest.fixture
def cache(fake_formats, fake_encoders) -> CapabilityCache:
    """CapabilityCache with pinned tool paths and fake capability tables."""
    cache = CapabilityCache(
        tool_paths=ToolPathsConfig(), detection_timeout=5.0, env={}
    )
    cache.set_ffmpeg_path("/opt/ffmpeg/bin/ffmpeg")
    cache.set_ffprobe_path("/opt/ffmpeg/bin/ffprobe")
    cache.set_flvtool_path("/opt/ffmpeg/bin/flvmeta")
    cache._set("formats", fake_formats)
    cache._set("encoders", fake_encoders)
    return cache


# =============================================================================
# Process fixtures
# =============================================================================


class RecordingPipe(io.BytesIO):
    """Writable pipe that remembers what was written after close()."""

    def __init__(self) -> None:
        super().__init__()
        self.data = b""

    def close(self) -> None:
        if not self.closed:
            self.data = self.getvalue()
        super().close()


class FakeProcess:
    """Stand-in for subprocess.Popen with in-memory pipes.

    A process created with hang=True keeps running until it is killed.
    """

    def __init__(
        self,
        stdout: bytes = b"",
        stderr: bytes = b"",
        returncode: int = 0,
        hang: bool = False,
        with_stdin: bool = False,
    ) -> None:
        self.stdout = io.BytesIO(stdout)
        self.stderr = io.BytesIO(stderr)
        self.stdin = RecordingPipe() if with_stdin else None
        self.returncode = None if hang else returncode
        self.signals: list[str] = []
        self.args = None
        self.kwargs = None

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        return self.returncode

    def kill(self) -> None:
        self.signals.append("SIGKILL")
        self.returncode = -signal.SIGKILL

    def send_signal(self, sig) -> None:
        self.signals.append(signal.Signals(sig).name)
        self.returncode = -int(sig)


@pytest.fixture
def fake_process():
    """Factory for FakeProcess instances."""
    return FakeProcess


@pytest.fixture
def popen_returning():
    """Build a Popen replacement that records its call and returns `process`."""

    def factory(process: FakeProcess):
        def popen(args, **kwargs):
            process.args = args
            process.kwargs = kwargs
            return process

        return popen

    return factory


# =============================================================================
# ffprobe fixtures
# =============================================================================

SAMPLE_PROBE_OUTPUT = """\
[STREAM]
index=0
codec_name=h264
codec_type=video
width=1280
height=720
r_frame_rate=25/1
duration=10.000000
DISPOSITION:default=1
TAG:language=und
[/STREAM]
[STREAM]
index=1
codec_name=aac
codec_type=audio
sample_rate=44100
channels=2
duration=10.005000
TAG:language=eng
[/STREAM]
[FORMAT]
filename=input.mp4
nb_streams=2
format_name=mov,mp4,m4a,3gp,3g2,mj2
duration=10.005000
bit_rate=1205341
TAG:title=Sample
[/FORMAT]
"""


@pytest.fixture
def sample_probe_output() -> str:
    """ffprobe default-writer output for a 10 second 720p file."""
    return SAMPLE_PROBE_OUTPUT


@pytest.fixture
def sample_probe_data() -> dict:
    """Parsed form of sample_probe_output."""
    return {
        "streams": [
            {
                "index": 0,
                "codec_name": "h264",
                "codec_type": "video",
                "width": 1280,
                "height": 720,
                "r_frame_rate": "25/1",
                "duration": 10.0,
                "disposition": {"default": 1},
                "tags": {"language": "und"},
            },
            {
                "index": 1,
                "codec_name": "aac",
                "codec_type": "audio",
                "sample_rate": 44100,
                "channels": 2,
                "duration": 10.005,
                "tags": {"language": "eng"},
            },
        ],
        "format": {
            "filename": "input.mp4",
            "nb_streams": 2,
            "format_name": "mov,mp4,m4a,3gp,3g2,mj2",
            "duration": 10.005,
            "bit_rate": 1205341,
            "tags": {"title": "Sample"},
        },
        "chapters": [],
    }


# =============================================================================
# Command fixtures
# =============================================================================


@pytest.fixture
def command(cache):
    """Command bound to the fake capability cache."""
    return Command(cache=cache)


@pytest.fixture
def mock_orchestrator():
    """Replace the ProcessOrchestrator used by Command.run()."""
    with patch("ffcommand.command.command.ProcessOrchestrator") as mock_cls:
        mock_cls.return_value.execute.return_value = JobResult(
            returncode=0, stdout="", stderr="", argv=["ffmpeg"]
        )
        yield mock_cls


@pytest.fixture
def mock_probe(sample_probe_data):
    """Replace ffprobe with a function returning sample_probe_data."""
    with patch(
        "ffcommand.command.command.probe", return_value=sample_probe_data
    ) as mock:
        yield mock
