"""Tests for ffmpeg progress and error parsing."""

from ffcommand.tools.ffmpeg_progress import (
    ProgressEvent,
    extract_error,
    extract_progress,
    parse_progress_line,
)

PROGRESS_LINE = (
    "frame=  120 fps= 30 q=28.0 size=     512kB time=00:00:04.00 "
    "bitrate=1048.6kbits/s speed=1.2x"
)


class TestParseProgressLine:
    """Tests for parse_progress_line()."""

    def test_key_value_pairs(self):
        """Padded values are collapsed into key=value pairs."""
        progress = parse_progress_line(PROGRESS_LINE)

        assert progress["frame"] == "120"
        assert progress["fps"] == "30"
        assert progress["size"] == "512kB"
        assert progress["time"] == "00:00:04.00"

    def test_non_progress_line(self):
        """Lines with a part lacking "=" are rejected."""
        assert parse_progress_line("Press [q] to stop") is None

    def test_empty_line(self):
        """Blank lines are rejected."""
        assert parse_progress_line("   ") is None


class TestExtractProgress:
    """Tests for extract_progress()."""

    def test_event_fields(self):
        """Numeric fields are parsed from their leading numbers."""
        event = extract_progress(PROGRESS_LINE)

        assert event == ProgressEvent(
            frames=120,
            current_fps=30,
            current_kbps=1048.6,
            target_size=512,
            timemark="00:00:04.00",
            percent=None,
        )

    def test_percent_with_duration(self):
        """Percent is computed against the known duration."""
        assert extract_progress(PROGRESS_LINE, duration=8.0).percent == 50

    def test_final_size_key(self):
        """The final Lsize key is used when size is absent."""
        event = extract_progress("Lsize=    2048kB time=00:00:10.00 bitrate=N/A")

        assert event.target_size == 2048
        assert event.current_kbps is None

    def test_requires_time(self):
        """Key/value lines without time are not progress."""
        assert extract_progress("frame=1 fps=0") is None

    def test_unparseable_time(self):
        """An unparseable time leaves percent unset."""
        event = extract_progress("time=N/A bitrate=N/A", duration=10)

        assert event.timemark == "N/A"
        assert event.percent is None


class TestExtractError:
    """Tests for extract_error()."""

    def test_error_lines_kept(self):
        """Only error-looking lines are returned."""
        stderr = (
            "ffmpeg version 6.1\n"
            "input.mp4: Invalid data found when processing input\n"
            "Unknown encoder 'foo'\n"
            "Conversion failed!\n"
        )

        assert extract_error(stderr) == (
            "input.mp4: Invalid data found when processing input\n"
            "Unknown encoder 'foo'"
        )

    def test_fallback(self):
        """Without matching lines a generic message is returned."""
        assert extract_error("Conversion failed!") == "Unknown error"
