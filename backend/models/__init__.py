"""
Models package for the size-lock backend.

This package contains the live measurement pipeline:
- Pinhole calibration and tunable settings
- Named body landmarks
- Per-frame measurement extraction
- Size chart classification
- Convergence state machine and measurement sessions
"""

__version__ = "1.0.0"

from .calibration import MeasurementSettings, PinholeCamera
from .convergence import ConvergenceStateMachine, FrameOutcome, Phase, SessionState
from .measurements import FrameMeasurementExtractor, FrameRejection, Measurement, RejectionReason
from .session import MeasurementSession
from .sizing import SIZE_CHART, UNKNOWN_SIZE, classify_size, estimate_size

__all__ = [
    "MeasurementSettings",
    "PinholeCamera",
    "ConvergenceStateMachine",
    "FrameOutcome",
    "Phase",
    "SessionState",
    "FrameMeasurementExtractor",
    "FrameRejection",
    "Measurement",
    "RejectionReason",
    "MeasurementSession",
    "SIZE_CHART",
    "UNKNOWN_SIZE",
    "classify_size",
    "estimate_size",
]
