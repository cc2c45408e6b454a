from __future__ import annotations

from dataclasses import dataclass, field

from .config import CALIBRATION_DURATION_MS, RAISE_LINE_FRACTION
from .types import CalibrationProgress, TrackingSnapshot
from .utils import clamp


@dataclass
class StartGestureDetector:
    """
    Hold-to-start gate: fires once either wrist has stayed above the raise
    line for `duration_ms`. Dropping the hand clears all progress.
    """

    field_height: float
    duration_ms: float = CALIBRATION_DURATION_MS
    line_fraction: float = RAISE_LINE_FRACTION
    calibration: CalibrationProgress = field(default_factory=CalibrationProgress)

    @property
    def raise_line(self) -> float:
        return self.field_height * self.line_fraction

    @property
    def progress(self) -> float:
        return self.calibration.progress

    @property
    def in_progress(self) -> bool:
        return self.calibration.started_at is not None

    def hand_raised(self, snapshot: TrackingSnapshot) -> bool:
        line = self.raise_line
        left = snapshot.left
        right = snapshot.right
        return (left.active and left.y < line) or (right.active and right.y < line)

    def reset(self) -> None:
        self.calibration = CalibrationProgress()

    def update(self, snapshot: TrackingSnapshot, now_ms: float) -> bool:
        """Returns True on the tick the calibration completes."""
        if not self.hand_raised(snapshot):
            self.reset()
            return False

        if self.calibration.started_at is None:
            self.calibration.started_at = now_ms
            self.calibration.progress = 0.0
            return False

        elapsed = now_ms - self.calibration.started_at
        self.calibration.progress = clamp(elapsed / self.duration_ms, 0.0, 1.0)
        if elapsed >= self.duration_ms:
            self.reset()
            return True
        return False
