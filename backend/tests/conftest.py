"""Shared fixtures for the size-lock backend tests."""

import pytest

from models.landmarks import LANDMARK_COUNT, BodyLandmark


FRAME_WIDTH = 1000
FRAME_HEIGHT = 1000
# 25 px eye spacing -> depth 6.3 * 500 / 25 = 126 cm
EYE_SPACING_PX = 25.0
DEPTH_CM = 126.0
CM_PER_PX = DEPTH_CM / 500.0


def build_frame(shoulder_cm=44.4, torso_cm=55.8, visibility=0.95, width=FRAME_WIDTH, height=FRAME_HEIGHT):
    """Build 33 normalized landmarks whose measurements come out at the given cm values."""
    landmarks = [{"x": 0.5, "y": 0.5, "visibility": visibility} for _ in range(LANDMARK_COUNT)]

    eye_half = EYE_SPACING_PX / 2 / width
    landmarks[BodyLandmark.LEFT_EYE] = {"x": 0.5 - eye_half, "y": 0.2, "visibility": visibility}
    landmarks[BodyLandmark.RIGHT_EYE] = {"x": 0.5 + eye_half, "y": 0.2, "visibility": visibility}

    shoulder_px = shoulder_cm / (1.48 * CM_PER_PX)
    shoulder_half = shoulder_px / 2 / width
    shoulder_y = 0.3
    landmarks[BodyLandmark.LEFT_SHOULDER] = {"x": 0.5 - shoulder_half, "y": shoulder_y, "visibility": visibility}
    landmarks[BodyLandmark.RIGHT_SHOULDER] = {"x": 0.5 + shoulder_half, "y": shoulder_y, "visibility": visibility}

    hip_y = shoulder_y + (torso_cm / CM_PER_PX) / height
    landmarks[BodyLandmark.LEFT_HIP] = {"x": 0.45, "y": hip_y, "visibility": visibility}
    landmarks[BodyLandmark.RIGHT_HIP] = {"x": 0.55, "y": hip_y, "visibility": visibility}
    return landmarks


@pytest.fixture
def frame_factory():
    """Return a builder for landmark frames with known measurements."""
    return build_frame


@pytest.fixture
def sample_landmarks():
    """A fully visible frame measuring 44.4 cm shoulders and 55.8 cm torso."""
    return build_frame()
