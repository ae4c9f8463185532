"""Named indices for the 33-point MediaPipe body landmark layout.

Raw numeric indices are resolved here, at the boundary with the pose model,
so measurement code only ever refers to joints by name.
"""
import math
from enum import IntEnum
from typing import Dict, List, Optional


class BodyLandmark(IntEnum):
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    LEFT_MOUTH_CORNER = 9
    RIGHT_MOUTH_CORNER = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


LANDMARK_COUNT = len(BodyLandmark)

REQUIRED_LANDMARKS = (
    BodyLandmark.LEFT_EYE,
    BodyLandmark.RIGHT_EYE,
    BodyLandmark.LEFT_SHOULDER,
    BodyLandmark.RIGHT_SHOULDER,
    BodyLandmark.LEFT_HIP,
    BodyLandmark.RIGHT_HIP,
)

# Keypoints whose confidence gates shoulder/torso measurement
TORSO_LANDMARKS = (
    BodyLandmark.LEFT_SHOULDER,
    BodyLandmark.RIGHT_SHOULDER,
    BodyLandmark.LEFT_HIP,
    BodyLandmark.RIGHT_HIP,
)


def get_landmark(landmarks: List[Optional[Dict]], joint: BodyLandmark) -> Optional[Dict]:
    """Safely get a landmark by joint name; None if absent or incomplete."""
    if joint >= len(landmarks):
        return None
    landmark = landmarks[joint]
    if not landmark or landmark.get("x") is None or landmark.get("y") is None:
        return None
    return landmark


def parse_landmark_frame(payload) -> List[Optional[Dict]]:
    """Validate a JSON landmark list into landmark dicts.

    Each entry is either null (joint not detected) or an object with numeric
    'x', 'y' and optional 'visibility'.

    Raises:
        ValueError: If the payload is not a list of such entries
    """
    if not isinstance(payload, list):
        raise ValueError("landmarks must be a list")

    frame = []
    for i, item in enumerate(payload):
        if item is None:
            frame.append(None)
            continue
        if not isinstance(item, dict):
            raise ValueError(f"landmark {i} must be an object or null")
        parsed = {}
        for key in ("x", "y", "visibility"):
            value = item.get(key)
            if value is None:
                parsed[key] = None
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"landmark {i} field '{key}' must be a finite number")
            parsed[key] = float(value)
        frame.append(parsed)
    return frame
