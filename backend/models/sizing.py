"""T-shirt size classification from shoulder width and torso height.

Body measurements rarely fall inside exactly one chart band, so each band is
widened by a tolerance on both axes and the candidate whose band centre is
closest to the measured point wins.
"""
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


UNKNOWN_SIZE = "Unknown"


@dataclass(frozen=True)
class SizeRange:
    label: str
    shoulder_min_cm: float
    shoulder_max_cm: float
    torso_min_cm: float
    torso_max_cm: float

    @property
    def midpoint(self) -> Tuple[float, float]:
        return (
            (self.shoulder_min_cm + self.shoulder_max_cm) / 2,
            (self.torso_min_cm + self.torso_max_cm) / 2,
        )

    def contains(self, shoulder_cm: float, torso_cm: float, tolerance_cm: float = 0.0) -> bool:
        return (
            self.shoulder_min_cm - tolerance_cm <= shoulder_cm <= self.shoulder_max_cm + tolerance_cm
            and self.torso_min_cm - tolerance_cm <= torso_cm <= self.torso_max_cm + tolerance_cm
        )

    def to_dict(self) -> Dict:
        return {
            "size": self.label,
            "shoulder_min_cm": self.shoulder_min_cm,
            "shoulder_max_cm": self.shoulder_max_cm,
            "torso_min_cm": self.torso_min_cm,
            "torso_max_cm": self.torso_max_cm,
        }


SIZE_CHART: Tuple[SizeRange, ...] = (
    SizeRange("XS", 38.0, 40.0, 48.0, 50.0),
    SizeRange("S", 40.0, 42.0, 50.0, 52.0),
    SizeRange("M", 42.0, 44.0, 52.0, 54.0),
    SizeRange("L", 44.0, 46.0, 54.0, 56.0),
    SizeRange("XL", 46.0, 48.0, 56.0, 58.0),
    SizeRange("XXL", 48.0, 50.0, 58.0, 60.0),
    SizeRange("XXXL", 50.0, 52.0, 60.0, 62.0),
)

DEFAULT_TOLERANCE_CM = 4.0


@dataclass(frozen=True)
class SizeMatch:
    label: str
    distance: Optional[float] = None
    candidates: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.label != UNKNOWN_SIZE


def classify_size(
    shoulder_cm: float,
    torso_cm: float,
    tolerance_cm: float = DEFAULT_TOLERANCE_CM,
    chart: Sequence[SizeRange] = SIZE_CHART,
) -> SizeMatch:
    """Tolerance-bounded nearest-centroid match against the size chart.

    Args:
        shoulder_cm: Shoulder width in cm
        torso_cm: Shoulder-to-hip torso height in cm
        tolerance_cm: Band expansion applied to both dimensions
        chart: Ordered size ranges; earlier ranges win exact distance ties

    Returns:
        SizeMatch with the winning label, or UNKNOWN_SIZE when no band matches
    """
    best: Optional[SizeRange] = None
    best_distance = math.inf
    candidates: List[str] = []

    for size_range in chart:
        if not size_range.contains(shoulder_cm, torso_cm, tolerance_cm):
            continue
        candidates.append(size_range.label)
        shoulder_mid, torso_mid = size_range.midpoint
        distance = math.hypot(shoulder_cm - shoulder_mid, torso_cm - torso_mid)
        if distance < best_distance:
            best_distance = distance
            best = size_range

    if best is None:
        return SizeMatch(UNKNOWN_SIZE)
    return SizeMatch(best.label, best_distance, tuple(candidates))


def estimate_size(shoulder_cm: float, torso_cm: float, tolerance_cm: float = DEFAULT_TOLERANCE_CM) -> str:
    """Return only the size label for a shoulder/torso pair."""
    return classify_size(shoulder_cm, torso_cm, tolerance_cm).label


BODY_TYPES = ("slim", "athletic", "regular")


def predict_size_from_profile(
    height_cm: float,
    weight_kg: float,
    body_type: str,
    chest_cm: Optional[float] = None,
) -> str:
    """Rule-based size for users who enter their data instead of using the camera.

    Raises:
        ValueError: If body_type is unknown or height/weight are not positive
    """
    if height_cm <= 0 or weight_kg <= 0:
        raise ValueError("height_cm and weight_kg must be positive")

    body_type = (body_type or "").strip().lower()
    if body_type not in BODY_TYPES:
        raise ValueError(f"body_type must be one of: {', '.join(BODY_TYPES)}")

    if body_type == "slim":
        if height_cm < 170 and weight_kg < 65:
            return "S"
        if height_cm >= 170 and weight_kg < 70:
            return "M"
        return "L"

    if body_type == "athletic":
        chest = chest_cm or 0
        if chest < 95:
            return "M"
        if chest < 105:
            return "L"
        return "XL"

    if weight_kg < 70:
        return "M"
    if weight_kg < 85:
        return "L"
    return "XL"
