"""Tests for tool lookup and capability listing parsers."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ffcommand.tools.detection import (
    find_tool,
    parse_codecs,
    parse_encoders,
    parse_filters,
    parse_formats,
    parse_version,
)
from ffcommand.tools.models import StreamKind

FORMATS_OUTPUT = """\
File formats:
 D. = Demuxing supported
 .E = Muxing supported
 --
 D  aac             raw ADTS AAC (Advanced Audio Coding)
 DE avi             AVI (Audio Video Interleaved)
  E mov             QuickTime / MOV
 D  mov,mp4,m4a,3gp,3g2,mj2 QuickTime / MOV
  E null            raw null video
"""

MODERN_CODECS_OUTPUT = """\
Codecs:
 D..... = Decoding supported
 .E.... = Encoding supported
 ..V... = Video codec
 -------
 DEV.LS h264                 H.264 / AVC / MPEG-4 AVC (decoders: h264 h264_cuvid ) (encoders: libx264 h264_nvenc )
 DEA.L. mp3                  MP3 (MPEG audio layer 3) (decoders: mp3float mp3 ) (encoders: libmp3lame )
 D.S... ass                  ASS (Advanced SSA) subtitle
"""  # noqa: E501

LEGACY_CODECS_OUTPUT = """\
Codecs:
 D..... = Decoding supported
 ------
 DEVSD  h263            H.263 / H.263-1996
  EA    libvorbis       libvorbis Vorbis
"""

ENCODERS_OUTPUT = """\
Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC (codec h264)
 VF.... png                  PNG (Portable Network Graphics) image
 A..X.. opus                 Opus (codec opus)
 S..... srt                  SubRip subtitle
"""

FILTERS_OUTPUT = """\
Filters:
  T.. = Timeline support
  ---
 ..C adelay            A->A       Delay one or more audio channels.
 TS. scale             V->V       Scale the input video size.
 ... split             V->VV      Pass on the input to N video outputs.
 ... concat            VV->VV     Concatenate audio and video streams.
 ... anullsrc          |->A       Null audio source, return empty audio frames.
"""


class TestFindTool:
    """Tests for find_tool() lookup order."""

    def test_env_var_wins(self, temp_dir: Path):
        """An existing file named by an env var is used first."""
        tool = temp_dir / "ffmpeg"
        tool.touch()

        result = find_tool(
            ["ffmpeg"],
            env_vars=["FFMPEG_PATH"],
            configured_path=Path("/elsewhere/ffmpeg"),
            env={"FFMPEG_PATH": str(tool)},
        )

        assert result == tool

    def test_missing_env_file_falls_through(self, temp_dir: Path):
        """A missing env var target falls back to the configured path."""
        configured = temp_dir / "configured-ffmpeg"
        configured.touch()

        result = find_tool(
            ["ffmpeg"],
            env_vars=["FFMPEG_PATH"],
            configured_path=configured,
            env={"FFMPEG_PATH": str(temp_dir / "missing")},
        )

        assert result == configured

    @patch("ffcommand.tools.detection.shutil.which")
    def test_path_lookup_in_name_order(self, mock_which):
        """PATH lookup tries candidate names in order."""
        mock_which.side_effect = lambda name: (
            "/usr/bin/flvtool2" if name == "flvtool2" else None
        )

        result = find_tool(["flvmeta", "flvtool2"], env={})

        assert result == Path("/usr/bin/flvtool2")
        assert [c.args[0] for c in mock_which.call_args_list] == [
            "flvmeta",
            "flvtool2",
        ]

    @patch("ffcommand.tools.detection._FALLBACK_DIRS", ())
    @patch("ffcommand.tools.detection.shutil.which", return_value=None)
    def test_extra_dirs(self, mock_which, temp_dir: Path):
        """Extra directories are searched when PATH lookup fails."""
        tool = temp_dir / "ffprobe"
        tool.touch()

        assert find_tool(["ffprobe"], extra_dirs=[temp_dir], env={}) == tool

    @patch("ffcommand.tools.detection._FALLBACK_DIRS", ())
    @patch("ffcommand.tools.detection.shutil.which", return_value=None)
    def test_not_found(self, mock_which):
        """None is returned when nothing matches."""
        assert find_tool(["ffmpeg"], env={}) is None


class TestParseVersion:
    """Tests for parse_version()."""

    @pytest.mark.parametrize(
        "banner,expected",
        [
            ("ffmpeg version 6.1.1 Copyright (c) 2000-2023", (6, 1, 1)),
            ("ffmpeg version 7.0 Copyright", (7, 0, 0)),
            ("ffmpeg version n6.1 Copyright", (6, 1, 0)),
        ],
    )
    def test_versions(self, banner, expected):
        """Release, two-part and git versions are parsed."""
        assert parse_version(banner).as_tuple() == expected

    def test_full_string(self):
        """str() of a version is the dotted number."""
        assert str(parse_version("ffmpeg version 7.0")) == "7.0"

    def test_unparseable(self):
        """Unknown banners yield None."""
        assert parse_version("avconv version 12") is None


class TestParseFormats:
    """Tests for parse_formats()."""

    def test_flags(self):
        """Demux and mux flags are read from the two flag columns."""
        formats = parse_formats(FORMATS_OUTPUT)

        assert formats["aac"].can_demux and not formats["aac"].can_mux
        assert formats["avi"].can_demux and formats["avi"].can_mux
        assert formats["null"].can_mux and not formats["null"].can_demux

    def test_comma_names_and_merging(self):
        """Comma lists split into entries; repeated names merge flags."""
        formats = parse_formats(FORMATS_OUTPUT)

        assert formats["mov"].can_demux and formats["mov"].can_mux
        assert formats["mp4"].can_demux
        assert "3g2" in formats

    def test_header_lines_ignored(self):
        """Legend lines do not produce entries."""
        formats = parse_formats(FORMATS_OUTPUT)

        assert "=" not in formats
        assert "Demuxing" not in formats


class TestParseCodecs:
    """Tests for parse_codecs()."""

    def test_modern_layout(self):
        """Modern flags and descriptions are parsed."""
        codecs = parse_codecs(MODERN_CODECS_OUTPUT)

        h264 = codecs["h264"]
        assert h264.type == StreamKind.VIDEO
        assert h264.can_decode and h264.can_encode
        assert h264.is_lossy and h264.is_lossless
        assert h264.description == "H.264 / AVC / MPEG-4 AVC"
        assert codecs["ass"].type == StreamKind.SUBTITLE

    def test_implementations_inherit(self):
        """Listed encoder and decoder implementations get their own entry."""
        codecs = parse_codecs(MODERN_CODECS_OUTPUT)

        assert codecs["libx264"].can_encode
        assert not codecs["libx264"].can_decode
        assert codecs["mp3float"].can_decode
        assert codecs["libmp3lame"].type == StreamKind.AUDIO

    def test_legacy_layout(self):
        """Legacy capability columns are parsed."""
        codecs = parse_codecs(LEGACY_CODECS_OUTPUT)

        h263 = codecs["h263"]
        assert h263.can_decode and h263.can_encode
        assert h263.draw_horiz_band and h263.direct_rendering
        assert not h263.weird_frame_truncation
        assert codecs["libvorbis"].can_encode
        assert not codecs["libvorbis"].can_decode


class TestParseEncoders:
    """Tests for parse_encoders()."""

    def test_encoders(self):
        """Kinds and flags are read; legend lines are skipped."""
        encoders = parse_encoders(ENCODERS_OUTPUT)

        assert set(encoders) == {"libx264", "png", "opus", "srt"}
        assert encoders["libx264"].type == StreamKind.VIDEO
        assert encoders["libx264"].direct_rendering_method_1
        assert encoders["png"].frame_mt
        assert encoders["opus"].experimental
        assert encoders["srt"].type == StreamKind.SUBTITLE


class TestParseFilters:
    """Tests for parse_filters()."""

    def test_filters(self):
        """Pad kinds and multiplicity are parsed."""
        filters = parse_filters(FILTERS_OUTPUT)

        assert filters["adelay"].input == StreamKind.AUDIO
        assert filters["scale"].output == StreamKind.VIDEO
        assert filters["split"].multiple_outputs
        assert not filters["split"].multiple_inputs
        assert filters["concat"].multiple_inputs
        assert filters["anullsrc"].input == StreamKind.NONE
        assert filters["scale"].description == "Scale the input video size."
