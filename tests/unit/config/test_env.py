"""Tests for EnvReader."""

from pathlib import Path

from ffcommand.config.env import EnvReader


class TestEnvReaderScalars:
    """Tests for string, int, float and bool conversion."""

    def test_get_str(self):
        """get_str returns the raw value or the default."""
        reader = EnvReader(env={"NAME": "value"})

        assert reader.get_str("NAME") == "value"
        assert reader.get_str("MISSING", "fallback") == "fallback"

    def test_blank_counts_as_unset(self):
        """Blank values fall back to the default; others are stripped."""
        reader = EnvReader(env={"BLANK": "   ", "PADDED": "  7 "})

        assert reader.get_str("BLANK", "fallback") == "fallback"
        assert reader.get_int("BLANK") is None
        assert reader.get_int("PADDED") == 7

    def test_get_int_valid(self):
        """get_int parses integers."""
        assert EnvReader(env={"N": "42"}).get_int("N") == 42

    def test_get_int_invalid_logs_warning(self, caplog):
        """get_int returns the default and warns on invalid values."""
        reader = EnvReader(env={"N": "many"})

        assert reader.get_int("N", 5) == 5
        assert "Invalid integer value for N" in caplog.text

    def test_get_float(self):
        """get_float parses floats and falls back on invalid values."""
        reader = EnvReader(env={"T": "1.5", "BAD": "x"})

        assert reader.get_float("T") == 1.5
        assert reader.get_float("BAD", 2.0) == 2.0
        assert reader.get_float("MISSING") is None

    def test_get_bool(self):
        """get_bool accepts the usual truthy spellings."""
        reader = EnvReader(
            env={"A": "true", "B": "YES", "C": "1", "D": "on", "E": "off"}
        )

        assert reader.get_bool("A") is True
        assert reader.get_bool("B") is True
        assert reader.get_bool("C") is True
        assert reader.get_bool("D") is True
        assert reader.get_bool("E") is False
        assert reader.get_bool("MISSING", True) is True


class TestEnvReaderPaths:
    """Tests for get_path()."""

    def test_existing_path(self, temp_dir: Path):
        """Existing paths are returned."""
        reader = EnvReader(env={"P": str(temp_dir)})

        assert reader.get_path("P") == temp_dir

    def test_missing_path_returns_default(self, temp_dir: Path, caplog):
        """Non-existent paths are ignored with a warning."""
        reader = EnvReader(env={"P": str(temp_dir / "nope")})

        assert reader.get_path("P") is None
        assert "non-existent path" in caplog.text

    def test_missing_path_allowed(self, temp_dir: Path):
        """must_exist=False returns paths that do not exist yet."""
        target = temp_dir / "later"
        reader = EnvReader(env={"P": str(target)})

        assert reader.get_path("P", must_exist=False) == target

    def test_empty_value_returns_default(self):
        """An empty variable is treated as unset."""
        reader = EnvReader(env={"P": ""})

        assert reader.get_path("P", default=Path("/x")) == Path("/x")
