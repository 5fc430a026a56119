"""Tests for size filter computation."""

import pytest

from ffcommand.command.sizing import (
    compute_size_filters,
    keep_dar_filters,
    parse_aspect,
)
from ffcommand.core.filters import make_filter_strings
from ffcommand.errors import ConfigurationError


def _compiled(size_data: dict) -> list[str]:
    return make_filter_strings(compute_size_filters(size_data))


class TestParseAspect:
    """Tests for parse_aspect()."""

    @pytest.mark.parametrize(
        "aspect,expected",
        [("16:9", 16 / 9), ("4:3", 4 / 3), ("1.5", 1.5), (2, 2.0), (1.25, 1.25)],
    )
    def test_valid(self, aspect, expected):
        """Ratios and numbers are accepted."""
        assert parse_aspect(aspect) == pytest.approx(expected)

    @pytest.mark.parametrize("aspect", ["wide", "16/9", "4:"])
    def test_invalid(self, aspect):
        """Other values raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid aspect ratio"):
            parse_aspect(aspect)


class TestComputeSizeFilters:
    """Tests for compute_size_filters()."""

    def test_no_size(self):
        """Without a size there are no filters."""
        assert compute_size_filters({"aspect": 1.5}) == []

    def test_percent(self):
        """A percentage scales both dimensions."""
        assert _compiled({"size": "50%"}) == [
            "scale=w=trunc(iw*0.5/2)*2:h=trunc(ih*0.5/2)*2"
        ]

    def test_fixed_size_rounded_even(self):
        """Fixed sizes are rounded to even numbers."""
        assert _compiled({"size": "641x479"}) == ["scale=w=642:h=480"]

    def test_fixed_width(self):
        """A fixed width derives the height from the input aspect."""
        assert _compiled({"size": "640x?"}) == ["scale=w=640:h=trunc(ow/a/2)*2"]

    def test_fixed_height(self):
        """A fixed height derives the width from the input aspect."""
        assert _compiled({"size": "?x480"}) == ["scale=w=trunc(oh*a/2)*2:h=480"]

    def test_fixed_width_with_aspect(self):
        """With an aspect ratio the missing dimension is computed."""
        assert _compiled({"size": "640x?", "aspect": 16 / 9}) == ["scale=w=640:h=360"]

    def test_fixed_height_with_aspect(self):
        """The width is computed from a fixed height and aspect."""
        assert _compiled({"size": "?x480", "aspect": 4 / 3}) == ["scale=w=640:h=480"]

    def test_padding(self):
        """Padding letterboxes into the requested box."""
        filters = compute_size_filters({"size": "640x480", "pad": "white"})

        assert [f.filter for f in filters] == ["scale", "pad"]
        pad = filters[1].options
        assert (pad["w"], pad["h"], pad["color"]) == (640, 480, "white")
        assert pad["x"] == "if(gt(a,1.3333333333333333),0,(640-iw)/2)"

    def test_padding_with_aspect(self):
        """Padding uses the requested aspect ratio."""
        filters = compute_size_filters(
            {"size": "640x?", "aspect": 4 / 3, "pad": "black"}
        )

        assert filters[1].options["h"] == 480
        assert "gt(a,1.3333333333333333)" in filters[0].options["w"]

    def test_padding_disabled(self):
        """pad=False produces a plain scale."""
        assert _compiled({"size": "640x480", "pad": False}) == ["scale=w=640:h=480"]

    def test_invalid_size(self):
        """Unknown size requests raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid size specified: big"):
            compute_size_filters({"size": "big"})


def test_keep_dar_filters():
    """keep_dar scales to square pixels and resets the SAR."""
    assert make_filter_strings(keep_dar_filters()) == [
        "scale=w='if(gt(sar,1),iw*sar,iw)':h='if(lt(sar,1),ih/sar,ih)'",
        "setsar=1",
    ]
