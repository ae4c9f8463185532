"""Tests for size chart classification and manual size prediction."""

import pytest

from models.sizing import (
    SIZE_CHART,
    UNKNOWN_SIZE,
    classify_size,
    estimate_size,
    predict_size_from_profile,
)


class TestClassifySize:
    """Tolerance-bounded nearest-centroid matching."""

    def test_chart_has_seven_ordered_sizes(self):
        assert [r.label for r in SIZE_CHART] == ["XS", "S", "M", "L", "XL", "XXL", "XXXL"]

    @pytest.mark.parametrize("size_range", SIZE_CHART, ids=lambda r: r.label)
    def test_band_midpoint_returns_own_label(self, size_range):
        shoulder_mid, torso_mid = size_range.midpoint
        match = classify_size(shoulder_mid, torso_mid)
        assert match.label == size_range.label
        assert match.distance == pytest.approx(0.0)

    def test_small_midpoint_beats_overlapping_neighbours(self):
        match = classify_size(41.0, 51.0)
        assert match.label == "S"
        assert match.distance == 0.0
        assert "XS" in match.candidates and "M" in match.candidates

    def test_nearest_centroid_wins(self):
        # Between L (45, 55) and XL (47, 57), closer to XL
        assert estimate_size(46.4, 55.8) == "XL"
        assert estimate_size(44.4, 55.8) == "L"

    def test_out_of_range_is_unknown(self):
        match = classify_size(20.0, 20.0)
        assert match.label == UNKNOWN_SIZE
        assert match.distance is None
        assert match.matched is False

    def test_tolerance_widens_bands(self):
        # 4 cm beyond XXXL's upper shoulder bound is still inside the default tolerance
        assert estimate_size(56.0, 61.0) == "XXXL"
        assert estimate_size(56.1, 61.0) == UNKNOWN_SIZE
        assert estimate_size(53.0, 61.0, tolerance_cm=0.0) == UNKNOWN_SIZE

    def test_classification_is_deterministic(self):
        results = {classify_size(44.2, 53.7, 4.0) for _ in range(20)}
        assert len(results) == 1


class TestManualPrediction:
    """Rule-based sizing from entered height, weight and body type."""

    @pytest.mark.parametrize("height,weight,expected", [
        (165, 60, "S"),
        (175, 68, "M"),
        (175, 75, "L"),
        (165, 70, "L"),
    ])
    def test_slim(self, height, weight, expected):
        assert predict_size_from_profile(height, weight, "slim") == expected

    @pytest.mark.parametrize("chest,expected", [(None, "M"), (90, "M"), (100, "L"), (110, "XL")])
    def test_athletic(self, chest, expected):
        assert predict_size_from_profile(180, 80, "athletic", chest) == expected

    @pytest.mark.parametrize("weight,expected", [(65, "M"), (80, "L"), (90, "XL")])
    def test_regular(self, weight, expected):
        assert predict_size_from_profile(175, weight, "Regular") == expected

    def test_unknown_body_type(self):
        with pytest.raises(ValueError):
            predict_size_from_profile(175, 70, "stocky")

    def test_non_positive_inputs(self):
        with pytest.raises(ValueError):
            predict_size_from_profile(0, 70, "slim")
