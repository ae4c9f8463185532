"""One camera session: frame extraction feeding the convergence state machine."""
import logging
import time
from typing import Dict, List, Optional

from models.calibration import MeasurementSettings
from models.convergence import ConvergenceStateMachine, FrameOutcome, SessionState
from models.measurements import FrameMeasurementExtractor


logger = logging.getLogger(__name__)


def now_ms() -> float:
    return time.time() * 1000


class MeasurementSession:
    """Owns the SessionState for a single camera session."""

    def __init__(self, settings: Optional[MeasurementSettings] = None):
        self.settings = settings or MeasurementSettings()
        self.extractor = FrameMeasurementExtractor(self.settings)
        self.machine = ConvergenceStateMachine(self.settings)
        self.state: SessionState = self.machine.reset()
        self.frames_processed = 0

    def submit(
        self,
        landmarks: List[Optional[Dict]],
        width: float,
        height: float,
        timestamp_ms: Optional[float] = None,
    ) -> FrameOutcome:
        """Process one landmark frame to completion."""
        timestamp_ms = now_ms() if timestamp_ms is None else timestamp_ms
        if self.state.locked:
            # Skip extraction entirely once the final measurement is held
            self.state, outcome = self.machine.advance(self.state, None, timestamp_ms)
            return outcome

        result = self.extractor.extract(landmarks, width, height)
        self.state, outcome = self.machine.advance(self.state, result, timestamp_ms)
        self.frames_processed += 1
        return outcome

    def reset(self) -> SessionState:
        """Return to Searching with an empty window; safe to call repeatedly."""
        self.state = self.machine.reset()
        self.frames_processed = 0
        logger.info("Measurement session reset")
        return self.state

    def snapshot(self) -> Dict:
        return {
            "state": self.state.to_dict(),
            "frames_processed": self.frames_processed,
            "settings": self.settings.to_dict(),
        }
