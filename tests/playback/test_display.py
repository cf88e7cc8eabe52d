"""Tests for renderer helpers."""

import pytest

from sokudoku.playback.display import focus_index, focus_split, format_elapsed

pytestmark = pytest.mark.unit


class TestFocus:
    @pytest.mark.parametrize(
        "surface,expected",
        [
            ("こんにちは", ("こん", "に", "ちは")),
            ("と母は", ("と", "母", "は")),
            ("母", ("", "母", "")),
            ("言った", ("言", "っ", "た")),
            ("", ("", "", "")),
        ],
    )
    def test_focus_split(self, surface, expected):
        assert focus_split(surface) == expected

    def test_focus_index(self):
        assert focus_index("ab") == 1
        assert focus_index("") == 0


class TestElapsed:
    @pytest.mark.parametrize("seconds,expected", [(0, "0:00"), (9.9, "0:09"), (75.9, "1:15"), (-3, "0:00")])
    def test_format(self, seconds, expected):
        assert format_elapsed(seconds) == expected
