"""Camera calibration and tuning parameters for live size measurement.

The pinhole model here uses the subject's eye spacing as the reference object:
depth is estimated from the pixel interocular distance, and body distances are
back-projected at that depth. All constants are calibration values, so they are
exposed as named settings that can be overridden from the environment.
"""
import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Mapping, Optional

from utils.geometry import GeometryCalculator


LOCK_STRATEGIES = ("dual_signal", "fixed_timer")

ENV_PREFIX = "MEASURE_"


@dataclass(frozen=True)
class MeasurementSettings:
    """Tunable parameters for extraction, convergence and classification."""

    # Pinhole calibration
    focal_length_px: float = 500.0
    real_interocular_cm: float = 6.3
    # Compensates the pose model placing shoulder keypoints inside the true shoulder line
    shoulder_scaling_factor: float = 1.48
    min_visibility: float = 0.5

    # Stability window
    quantization_step_cm: float = 0.5
    stability_window_size: int = 10
    stability_min_samples: int = 8
    stability_tolerance_cm: float = 3.0
    hold_duration_ms: float = 5000.0

    # Repeated-label signal
    repeat_label_threshold: int = 5

    # Classification
    classification_tolerance_cm: float = 4.0
    lock_shoulder_offset_cm: float = 2.0

    lock_strategy: str = "dual_signal"
    fixed_timer_ms: float = 5000.0

    def validate(self) -> "MeasurementSettings":
        """Raise ValueError if the settings cannot drive a session."""
        for name in ("focal_length_px", "real_interocular_cm", "shoulder_scaling_factor", "quantization_step_cm"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.stability_window_size < 1 or self.stability_min_samples < 1:
            raise ValueError("stability window sizes must be at least 1")
        if self.stability_min_samples > self.stability_window_size:
            raise ValueError("stability_min_samples cannot exceed stability_window_size")
        if self.repeat_label_threshold < 1:
            raise ValueError("repeat_label_threshold must be at least 1")
        if self.lock_strategy not in LOCK_STRATEGIES:
            raise ValueError(f"lock_strategy must be one of: {', '.join(LOCK_STRATEGIES)}")
        return self

    def with_overrides(self, **overrides) -> "MeasurementSettings":
        """Return a validated copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        coerced = {name: _coerce(name, value) for name, value in overrides.items()}
        return replace(self, **coerced).validate()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MeasurementSettings":
        """Build settings from MEASURE_* environment variables.

        e.g. MEASURE_FOCAL_LENGTH_PX=620 overrides focal_length_px.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            if key in environ and environ[key] != "":
                try:
                    overrides[f.name] = _coerce(f.name, environ[key])
                except ValueError as e:
                    raise ValueError(f"Invalid value for {key}: {environ[key]!r}") from e
        return cls().with_overrides(**overrides)

    def to_dict(self) -> Dict:
        return asdict(self)


_FIELD_TYPES = {
    "stability_window_size": int,
    "stability_min_samples": int,
    "repeat_label_threshold": int,
    "lock_strategy": str,
}


def _coerce(name: str, value):
    kind = _FIELD_TYPES.get(name, float)
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be an integer")
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric")
    return kind(value)


class PinholeCamera:
    """Converts pixel distances to centimeters using eye spacing as reference."""

    def __init__(self, settings: Optional[MeasurementSettings] = None):
        self.settings = settings or MeasurementSettings()
        self.geom = GeometryCalculator()

    def depth_from_eyes(self, pixel_interocular_distance: float) -> float:
        """Estimate subject distance in cm.

        Raises:
            ValueError: If the eyes coincide in pixel space
        """
        return self.geom.estimate_depth_cm(
            pixel_interocular_distance,
            self.settings.focal_length_px,
            self.settings.real_interocular_cm,
        )

    def pixels_to_cm(self, pixels: float, depth_cm: float) -> float:
        """Convert a pixel distance at the given depth to centimeters."""
        return self.geom.pixels_to_cm(pixels, depth_cm, self.settings.focal_length_px)


def get_default_settings() -> MeasurementSettings:
    """Settings from the environment, falling back to built-in calibration."""
    return MeasurementSettings.from_env()
