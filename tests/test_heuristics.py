"""Tests for the aspect-ratio grid suggester."""

from __future__ import annotations

import pytest

from blockslice.config import Confidence, GridSuggestion
from blockslice.heuristics import suggest_grid_dimensions


class TestKnownSizes:
    def test_large_square(self):
        s = suggest_grid_dimensions(3000, 3000)
        assert (s.rows, s.cols, s.confidence) == (4, 4, Confidence.HIGH)

    def test_small_square(self):
        s = suggest_grid_dimensions(1000, 1000)
        assert (s.rows, s.cols, s.confidence) == (3, 3, Confidence.HIGH)

    def test_square_threshold_is_exclusive(self):
        # exactly 2000x2000 pixels is not "large"
        s = suggest_grid_dimensions(2000, 2000)
        assert (s.rows, s.cols) == (3, 3)

    def test_near_square_counts_as_square(self):
        s = suggest_grid_dimensions(1050, 1000)
        assert (s.rows, s.cols) == (3, 3)

    def test_wide_panorama(self):
        s = suggest_grid_dimensions(3840, 1200)
        assert s.rows == 2
        assert s.cols == 6
        assert s.confidence == Confidence.MEDIUM

    def test_very_wide_capped_at_eight(self):
        s = suggest_grid_dimensions(10000, 1000)
        assert (s.rows, s.cols) == (2, 8)

    def test_tall_image(self):
        s = suggest_grid_dimensions(1000, 2500)
        assert s.cols == 2
        assert s.rows == 5
        assert s.confidence == Confidence.MEDIUM

    def test_very_tall_capped_at_eight(self):
        s = suggest_grid_dimensions(300, 6000)
        assert (s.rows, s.cols) == (8, 2)

    def test_full_hd_landscape(self):
        s = suggest_grid_dimensions(1920, 1080)
        assert (s.rows, s.cols, s.confidence) == (3, 4, Confidence.HIGH)

    def test_portrait_phone(self):
        s = suggest_grid_dimensions(1080, 1920)
        assert (s.rows, s.cols, s.confidence) == (4, 3, Confidence.HIGH)

    def test_landscape_fallback(self):
        # 1.25 sits between the square and 16:9 bands
        s = suggest_grid_dimensions(1250, 1000)
        assert (s.rows, s.cols, s.confidence) == (3, 4, Confidence.LOW)

    def test_portrait_fallback(self):
        s = suggest_grid_dimensions(850, 1000)
        assert (s.rows, s.cols, s.confidence) == (4, 3, Confidence.LOW)

    def test_ratio_exactly_two_falls_through(self):
        s = suggest_grid_dimensions(2000, 1000)
        assert (s.rows, s.cols, s.confidence) == (3, 4, Confidence.LOW)

    def test_ratio_exactly_half_falls_through(self):
        s = suggest_grid_dimensions(1000, 2000)
        assert (s.rows, s.cols, s.confidence) == (4, 3, Confidence.LOW)

    def test_half_rounds_up(self):
        # 2.25 * 2 = 4.5 -> 5 cols
        s = suggest_grid_dimensions(2250, 1000)
        assert s.cols == 5


class TestInvariants:
    @pytest.mark.parametrize("width", [1, 7, 100, 640, 1024, 1920, 4000, 12000])
    @pytest.mark.parametrize("height", [1, 9, 100, 480, 1080, 3000, 9000])
    def test_bounds(self, width, height):
        s = suggest_grid_dimensions(width, height)
        assert 1 <= s.rows <= 8
        assert 1 <= s.cols <= 8
        assert s.reason

    def test_idempotent(self):
        assert suggest_grid_dimensions(1234, 567) == suggest_grid_dimensions(1234, 567)

    def test_zero_height_is_low_confidence_landscape(self):
        s = suggest_grid_dimensions(800, 0)
        assert (s.rows, s.cols, s.confidence) == (3, 4, Confidence.LOW)
        assert "Invalid" in s.reason

    def test_negative_width(self):
        s = suggest_grid_dimensions(-5, 100)
        assert (s.rows, s.cols, s.confidence) == (3, 4, Confidence.LOW)


class TestGridSuggestion:
    def test_rejects_empty_grid(self):
        with pytest.raises(ValueError):
            GridSuggestion(0, 3, Confidence.LOW, "nope")

    def test_is_frozen(self):
        s = suggest_grid_dimensions(1000, 1000)
        with pytest.raises(AttributeError):
            s.rows = 5

    def test_dict_round_trip(self):
        s = suggest_grid_dimensions(3840, 1200)
        d = s.to_dict()
        assert d["confidence"] == "medium"
        assert GridSuggestion.from_dict(d) == s

    def test_accepts_plain_string_confidence(self):
        s = GridSuggestion(2, 2, "high", "manual")
        assert s.confidence is Confidence.HIGH
