from __future__ import annotations

import logging
from typing import Iterable, Optional

from .config import MIN_KEYPOINT_CONFIDENCE
from .smoothing import PositionSmoother
from .types import Keypoint, TrackingSnapshot, TrackingSource, Wrist
from .utils import is_finite_point

logger = logging.getLogger(__name__)


MODEL_INITIALIZING = "initializing"
MODEL_READY = "ready"
MODEL_EXTERNAL_ONLY = "ready (external only)"

# Keypoint names and COCO-17 indices we accept for each wrist.
_WRIST_NAMES = {
    "left_wrist": Wrist.LEFT,
    "leftwrist": Wrist.LEFT,
    "right_wrist": Wrist.RIGHT,
    "rightwrist": Wrist.RIGHT,
}
_WRIST_INDICES = {9: Wrist.LEFT, 10: Wrist.RIGHT}


def wrist_for_keypoint(kp: Keypoint) -> Optional[Wrist]:
    wrist = _WRIST_NAMES.get((kp.name or "").lower())
    if wrist is None:
        wrist = _WRIST_INDICES.get(kp.index)
    return wrist


def parse_wrist(name) -> Optional[Wrist]:
    try:
        return Wrist(str(name).lower())
    except ValueError:
        return None


class TrackingArbiter:
    """
    Decides which source is authoritative and folds it into one snapshot.

    Local pose results are only taken while the source is LOCAL, external
    samples only while it is EXTERNAL. Each wrist keeps its own smoothing
    history keyed by wrist identity, independent of the source.
    """

    def __init__(
        self,
        smoother: Optional[PositionSmoother] = None,
        source: TrackingSource = TrackingSource.LOCAL,
        auto_switch: bool = True,
        reset_history_on_switch: bool = False,
        min_confidence: float = MIN_KEYPOINT_CONFIDENCE,
    ) -> None:
        self.smoother = smoother or PositionSmoother()
        self.snapshot = TrackingSnapshot()
        self.auto_switch = auto_switch
        self.reset_history_on_switch = reset_history_on_switch
        self.min_confidence = min_confidence
        self.local_available = True
        self.model_status = MODEL_INITIALIZING
        self._source = source

    @property
    def source(self) -> TrackingSource:
        return self._source

    def set_source(self, source: TrackingSource) -> bool:
        source = TrackingSource(source)
        if source is TrackingSource.LOCAL and not self.local_available:
            logger.warning("Local pose detection is unavailable; staying on external sensors")
            return False
        if source is self._source:
            return True
        logger.info("Tracking source: %s -> %s", self._source.value, source.value)
        self._source = source
        if self.reset_history_on_switch:
            self.smoother.reset()
        self.snapshot.deactivate()
        return True

    def mark_local_ready(self) -> None:
        if self.local_available:
            self.model_status = MODEL_READY

    def mark_local_unavailable(self) -> None:
        self.local_available = False
        self.model_status = MODEL_EXTERNAL_ONLY
        self.set_source(TrackingSource.EXTERNAL)

    def ingest_local_pose(self, keypoints: Iterable[Keypoint]) -> bool:
        if self._source is not TrackingSource.LOCAL:
            return False

        self.snapshot.deactivate()
        for kp in keypoints:
            wrist = wrist_for_keypoint(kp)
            if wrist is None or kp.confidence <= self.min_confidence:
                continue
            if not is_finite_point(kp.x, kp.y):
                continue
            self._write(wrist, kp.x, kp.y, True)
        return True

    def ingest_external(self, point, x, y, active: bool = True) -> bool:
        wrist = parse_wrist(point)
        if wrist is None:
            logger.warning("Ignoring external sample for unknown point %r", point)
            return False
        if not is_finite_point(x, y):
            logger.warning("Ignoring non-finite external sample for %s: (%r, %r)", wrist.value, x, y)
            return False

        if self._source is not TrackingSource.EXTERNAL:
            if not self.auto_switch:
                return False
            logger.info("External wrist data received; switching to external sensors")
            self.set_source(TrackingSource.EXTERNAL)

        self._write(wrist, x, y, bool(active))
        return True

    def _write(self, wrist: Wrist, x, y, active: bool) -> None:
        sx, sy = self.smoother.smooth(wrist.value, float(x), float(y))
        pt = self.snapshot.point(wrist)
        pt.x = sx
        pt.y = sy
        pt.active = active
