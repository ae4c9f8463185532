"""Tests for per-frame measurement extraction."""

import pytest

from models.calibration import MeasurementSettings
from models.landmarks import TORSO_LANDMARKS, BodyLandmark, parse_landmark_frame
from models.measurements import FrameMeasurementExtractor, FrameRejection, Measurement, RejectionReason

from conftest import DEPTH_CM, FRAME_HEIGHT, FRAME_WIDTH


@pytest.fixture
def extractor():
    return FrameMeasurementExtractor(MeasurementSettings())


class TestFrameMeasurementExtractor:

    def test_extracts_measurement(self, extractor, sample_landmarks):
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)

        assert isinstance(result, Measurement)
        assert result.distance_cm == pytest.approx(DEPTH_CM)
        assert result.shoulder_width_cm == pytest.approx(44.4)
        assert result.torso_height_cm == pytest.approx(55.8)

    def test_provisional_label_uses_raw_shoulder_width(self, extractor, sample_landmarks):
        # 44.4 classifies as L; with the lock offset it would be XL
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert result.size_label == "L"

    def test_shoulder_scaling_factor_is_configurable(self, sample_landmarks):
        settings = MeasurementSettings(shoulder_scaling_factor=1.0)
        result = FrameMeasurementExtractor(settings).extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert result.shoulder_width_cm == pytest.approx(44.4 / 1.48)

    def test_focal_length_is_configurable(self, sample_landmarks):
        # Depth and back-projection both scale with focal length, so widths are unchanged
        result = FrameMeasurementExtractor(MeasurementSettings(focal_length_px=1000.0)).extract(
            sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT
        )
        assert result.distance_cm == pytest.approx(2 * DEPTH_CM)
        assert result.shoulder_width_cm == pytest.approx(44.4)

    def test_missing_landmarks_rejected(self, extractor, sample_landmarks):
        result = extractor.extract(sample_landmarks[:20], FRAME_WIDTH, FRAME_HEIGHT)
        assert isinstance(result, FrameRejection)
        assert result.reason is RejectionReason.LANDMARKS_MISSING

    def test_null_landmark_rejected(self, extractor, sample_landmarks):
        sample_landmarks[BodyLandmark.RIGHT_HIP] = None
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert result.reason is RejectionReason.LANDMARKS_MISSING

    def test_empty_frame_rejected(self, extractor):
        result = extractor.extract([], FRAME_WIDTH, FRAME_HEIGHT)
        assert result.reason is RejectionReason.LANDMARKS_MISSING

    def test_coincident_eyes_rejected(self, extractor, sample_landmarks):
        sample_landmarks[BodyLandmark.RIGHT_EYE] = dict(sample_landmarks[BodyLandmark.LEFT_EYE])
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert result.reason is RejectionReason.DEPTH_UNAVAILABLE

    @pytest.mark.parametrize("joint", TORSO_LANDMARKS, ids=lambda j: j.name)
    def test_visibility_below_threshold_rejected(self, extractor, sample_landmarks, joint):
        sample_landmarks[joint]["visibility"] = 0.49
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert result.reason is RejectionReason.LOW_VISIBILITY
        assert "Move back" in result.hint

    @pytest.mark.parametrize("joint", TORSO_LANDMARKS, ids=lambda j: j.name)
    def test_visibility_at_threshold_accepted(self, extractor, sample_landmarks, joint):
        sample_landmarks[joint]["visibility"] = 0.50
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert isinstance(result, Measurement)

    def test_eye_visibility_is_not_gated(self, extractor, sample_landmarks):
        sample_landmarks[BodyLandmark.LEFT_EYE]["visibility"] = 0.1
        result = extractor.extract(sample_landmarks, FRAME_WIDTH, FRAME_HEIGHT)
        assert isinstance(result, Measurement)

    def test_unknown_size_is_not_a_rejection(self, extractor, frame_factory):
        result = extractor.extract(frame_factory(shoulder_cm=25.0, torso_cm=30.0), FRAME_WIDTH, FRAME_HEIGHT)
        assert isinstance(result, Measurement)
        assert result.size_label == "Unknown"


class TestParseLandmarkFrame:

    def test_parses_nulls_and_numbers(self):
        frame = parse_landmark_frame([None, {"x": 1, "y": 0.5}, {"x": 0.1, "y": 0.2, "visibility": 0.9}])
        assert frame[0] is None
        assert frame[1] == {"x": 1.0, "y": 0.5, "visibility": None}
        assert frame[2]["visibility"] == 0.9

    @pytest.mark.parametrize("payload", [None, {"x": 1}, [1, 2], [{"x": "left", "y": 0.2}], [{"x": True, "y": 0.2}]])
    def test_rejects_malformed_payloads(self, payload):
        with pytest.raises(ValueError):
            parse_landmark_frame(payload)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_rejects_non_finite_coordinates(self, value):
        with pytest.raises(ValueError, match="finite"):
            parse_landmark_frame([{"x": value, "y": 0.5, "visibility": 0.9}])
