"""Per-frame shoulder and torso measurement from 33 MediaPipe landmarks.

Each frame is measured independently:
- depth from the eye spacing (pinhole model)
- shoulder width from the scaled shoulder keypoint distance
- torso height from shoulder midpoint to hip midpoint
- a provisional size label from the size chart

Frames that cannot be measured yield a FrameRejection instead of an exception.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from models.calibration import MeasurementSettings, PinholeCamera
from models.landmarks import REQUIRED_LANDMARKS, TORSO_LANDMARKS, BodyLandmark, get_landmark
from models.sizing import classify_size
from utils.geometry import GeometryCalculator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Measurement:
    """Body measurement in centimeters with its size label."""

    distance_cm: float
    shoulder_width_cm: float
    torso_height_cm: float
    size_label: str

    def to_dict(self) -> Dict:
        return asdict(self)


class RejectionReason(Enum):
    LANDMARKS_MISSING = "landmarks_missing"
    DEPTH_UNAVAILABLE = "depth_unavailable"
    LOW_VISIBILITY = "low_visibility"

    @property
    def hint(self) -> str:
        return _HINTS[self]


_HINTS = {
    RejectionReason.LANDMARKS_MISSING: "Cannot measure. Make sure your face, shoulders and hips are in view.",
    RejectionReason.DEPTH_UNAVAILABLE: "Cannot estimate distance. Retrying on the next frame.",
    RejectionReason.LOW_VISIBILITY: "Move back a little so your full torso is in frame.",
}


@dataclass(frozen=True)
class FrameRejection:
    reason: RejectionReason

    @property
    def hint(self) -> str:
        return self.reason.hint

    def to_dict(self) -> Dict:
        return {"reason": self.reason.value, "hint": self.hint}


FrameResult = Union[Measurement, FrameRejection]


class FrameMeasurementExtractor:
    """Extract provisional measurements from single landmark frames."""

    def __init__(self, settings: Optional[MeasurementSettings] = None):
        self.settings = settings or MeasurementSettings()
        self.camera = PinholeCamera(self.settings)
        self.geom = GeometryCalculator()

    def _to_px(self, landmark: Dict, width: float, height: float) -> Dict:
        return {"x_px": landmark["x"] * width, "y_px": landmark["y"] * height}

    def extract(self, landmarks: List[Optional[Dict]], width: float, height: float) -> FrameResult:
        """Measure one frame.

        Args:
            landmarks: Landmark dicts with normalized 'x', 'y' and 'visibility'
            width: Frame width in pixels
            height: Frame height in pixels

        Returns:
            Provisional Measurement, or FrameRejection describing why not
        """
        points = {}
        for joint in REQUIRED_LANDMARKS:
            landmark = get_landmark(landmarks or [], joint)
            if landmark is None:
                logger.debug(f"Frame rejected: {joint.name} missing")
                return FrameRejection(RejectionReason.LANDMARKS_MISSING)
            points[joint] = self._to_px(landmark, width, height)

        eye_px = self.geom.distance_2d(points[BodyLandmark.LEFT_EYE], points[BodyLandmark.RIGHT_EYE])
        if eye_px == 0:
            return FrameRejection(RejectionReason.DEPTH_UNAVAILABLE)
        distance_cm = self.camera.depth_from_eyes(eye_px)

        if not self.geom.visibility_check(landmarks, TORSO_LANDMARKS, self.settings.min_visibility):
            return FrameRejection(RejectionReason.LOW_VISIBILITY)

        shoulder_px = self.geom.distance_2d(
            points[BodyLandmark.LEFT_SHOULDER], points[BodyLandmark.RIGHT_SHOULDER]
        ) * self.settings.shoulder_scaling_factor
        shoulder_width_cm = self.camera.pixels_to_cm(shoulder_px, distance_cm)

        shoulder_mid = self.geom.midpoint(points[BodyLandmark.LEFT_SHOULDER], points[BodyLandmark.RIGHT_SHOULDER])
        hip_mid = self.geom.midpoint(points[BodyLandmark.LEFT_HIP], points[BodyLandmark.RIGHT_HIP])
        torso_height_cm = self.camera.pixels_to_cm(self.geom.distance_2d(shoulder_mid, hip_mid), distance_cm)

        size = classify_size(shoulder_width_cm, torso_height_cm, self.settings.classification_tolerance_cm)

        return Measurement(
            distance_cm=distance_cm,
            shoulder_width_cm=shoulder_width_cm,
            torso_height_cm=torso_height_cm,
            size_label=size.label,
        )
