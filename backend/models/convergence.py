"""Convergence state machine that locks a final measurement for a session.

Two signals run side by side on accepted frames and either one locks:
- stillness: the std-dev of recent quantized shoulder widths stays under a
  tolerance for a hold duration
- repeated label: the provisional size label repeats for N consecutive frames

State lives in an immutable SessionState that is passed into and returned from
every call, so a session can be reset or replayed in isolation.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from models.calibration import MeasurementSettings
from models.measurements import FrameRejection, FrameResult, Measurement
from models.sizing import classify_size
from utils.geometry import GeometryCalculator


logger = logging.getLogger(__name__)


class Phase(Enum):
    SEARCHING = "searching"
    CONVERGING = "converging"
    LOCKED = "locked"


class StabilityWindow:
    """Helpers for the rolling buffer of quantized shoulder widths."""

    @staticmethod
    def quantize(value: float, step: float = 0.5) -> float:
        """Round to the nearest step, halves rounding up."""
        return math.floor(value / step + 0.5) * step

    @staticmethod
    def push(window: Tuple[float, ...], sample: float, capacity: int) -> Tuple[float, ...]:
        """Append a sample, evicting the oldest beyond capacity."""
        return (window + (sample,))[-capacity:]

    @staticmethod
    def is_still(window: Tuple[float, ...], min_samples: int = 8, tolerance_cm: float = 3.0) -> bool:
        """True when the last min_samples samples vary less than tolerance.

        Not evaluable (False) while the window holds fewer than min_samples.
        """
        if len(window) < min_samples:
            return False
        return GeometryCalculator.std_dev(window[-min_samples:]) < tolerance_cm


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.SEARCHING
    window: Tuple[float, ...] = ()
    last_movement_ms: Optional[float] = None
    repeat_count: int = 0
    last_label: Optional[str] = None
    converging_since_ms: Optional[float] = None
    final: Optional[Measurement] = None

    @property
    def locked(self) -> bool:
        return self.phase is Phase.LOCKED

    def to_dict(self) -> Dict:
        return {
            "phase": self.phase.value,
            "window": list(self.window),
            "last_movement_ms": self.last_movement_ms,
            "repeat_count": self.repeat_count,
            "last_label": self.last_label,
            "final": self.final.to_dict() if self.final else None,
        }


@dataclass(frozen=True)
class FrameOutcome:
    """Result of one frame for the presentation layer."""

    kind: str  # provisional | rejected | locked | ignored
    phase: Phase
    measurement: Optional[Measurement] = None
    rejection: Optional[FrameRejection] = None
    hold_remaining_ms: Optional[float] = None
    repeat_count: int = 0

    @property
    def locked(self) -> bool:
        return self.phase is Phase.LOCKED

    def to_dict(self) -> Dict:
        data = {
            "kind": self.kind,
            "phase": self.phase.value,
            "locked": self.locked,
            "measurement": self.measurement.to_dict() if self.measurement else None,
            "hold_remaining_ms": self.hold_remaining_ms,
            "repeat_count": self.repeat_count,
        }
        if self.rejection is not None:
            data.update(self.rejection.to_dict())
        return data


class ConvergenceStateMachine:
    """Decides when a stream of provisional measurements is steady enough to lock."""

    def __init__(self, settings: Optional[MeasurementSettings] = None):
        self.settings = settings or MeasurementSettings()

    def reset(self) -> SessionState:
        return SessionState()

    def advance(self, state: SessionState, result: FrameResult, now_ms: float) -> Tuple[SessionState, FrameOutcome]:
        """Feed one frame result and return the new state and its outcome."""
        if state.locked:
            return state, FrameOutcome("ignored", Phase.LOCKED, measurement=state.final)

        if isinstance(result, FrameRejection):
            return self._reject(state, result, now_ms)

        if self.settings.lock_strategy == "fixed_timer":
            return self._advance_fixed_timer(state, result, now_ms)
        return self._advance_dual_signal(state, result, now_ms)

    def _reject(self, state: SessionState, rejection: FrameRejection, now_ms: float):
        state = replace(
            state,
            phase=Phase.SEARCHING,
            last_movement_ms=now_ms,
            repeat_count=0,
            last_label=None,
            converging_since_ms=None,
        )
        return state, FrameOutcome(
            "rejected",
            state.phase,
            rejection=rejection,
            hold_remaining_ms=self._hold_ms(),
        )

    def _advance_dual_signal(self, state: SessionState, measurement: Measurement, now_ms: float):
        s = self.settings
        sample = StabilityWindow.quantize(measurement.shoulder_width_cm, s.quantization_step_cm)
        window = StabilityWindow.push(state.window, sample, s.stability_window_size)

        last_movement_ms = state.last_movement_ms
        hold_remaining_ms = s.hold_duration_ms
        still_locked = False
        if StabilityWindow.is_still(window, s.stability_min_samples, s.stability_tolerance_cm):
            if last_movement_ms is None:
                last_movement_ms = now_ms
            held_ms = now_ms - last_movement_ms
            hold_remaining_ms = max(0.0, s.hold_duration_ms - held_ms)
            still_locked = held_ms >= s.hold_duration_ms
        else:
            last_movement_ms = now_ms

        repeat_count, last_label = self._track_label(state, measurement.size_label)

        state = replace(
            state,
            phase=Phase.CONVERGING,
            window=window,
            last_movement_ms=last_movement_ms,
            repeat_count=repeat_count,
            last_label=last_label,
            converging_since_ms=state.converging_since_ms if state.converging_since_ms is not None else now_ms,
        )

        if still_locked or repeat_count >= s.repeat_label_threshold:
            signal = "stillness" if still_locked else "repeated label"
            return self._lock(state, measurement, signal)

        return state, FrameOutcome(
            "provisional",
            state.phase,
            measurement=measurement,
            hold_remaining_ms=hold_remaining_ms,
            repeat_count=repeat_count,
        )

    def _advance_fixed_timer(self, state: SessionState, measurement: Measurement, now_ms: float):
        started_ms = state.converging_since_ms if state.converging_since_ms is not None else now_ms
        state = replace(state, phase=Phase.CONVERGING, converging_since_ms=started_ms)
        elapsed_ms = now_ms - started_ms
        if elapsed_ms >= self.settings.fixed_timer_ms:
            return self._lock(state, measurement, "fixed timer")
        return state, FrameOutcome(
            "provisional",
            state.phase,
            measurement=measurement,
            hold_remaining_ms=self.settings.fixed_timer_ms - elapsed_ms,
        )

    def _track_label(self, state: SessionState, label: str) -> Tuple[int, Optional[str]]:
        if label == state.last_label:
            return state.repeat_count + 1, label
        return 1, label

    def _lock(self, state: SessionState, measurement: Measurement, signal: str):
        s = self.settings
        size = classify_size(
            measurement.shoulder_width_cm + s.lock_shoulder_offset_cm,
            measurement.torso_height_cm,
            s.classification_tolerance_cm,
        )
        final = replace(measurement, size_label=size.label)
        state = replace(state, phase=Phase.LOCKED, final=final)
        logger.info(
            f"Measurement locked by {signal}: size={final.size_label}, "
            f"shoulder={final.shoulder_width_cm:.1f}cm, torso={final.torso_height_cm:.1f}cm"
        )
        return state, FrameOutcome(
            "locked",
            Phase.LOCKED,
            measurement=final,
            hold_remaining_ms=0.0,
            repeat_count=state.repeat_count,
        )

    def _hold_ms(self) -> float:
        if self.settings.lock_strategy == "fixed_timer":
            return self.settings.fixed_timer_ms
        return self.settings.hold_duration_ms
