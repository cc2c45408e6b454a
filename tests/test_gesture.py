"""Tests for StartGestureDetector."""
import pytest

from motionpop.gesture import StartGestureDetector
from motionpop.types import TrackedPoint, TrackingSnapshot

HEIGHT = 720.0


def snapshot(left_y=None, right_y=None):
    snap = TrackingSnapshot()
    if left_y is not None:
        snap.left = TrackedPoint(x=100, y=left_y, active=True)
    if right_y is not None:
        snap.right = TrackedPoint(x=500, y=right_y, active=True)
    return snap


class TestHandRaised:
    def test_either_hand_suffices(self):
        det = StartGestureDetector(field_height=HEIGHT)

        assert det.hand_raised(snapshot(left_y=0.5 * HEIGHT))
        assert det.hand_raised(snapshot(right_y=0.1 * HEIGHT))
        assert det.hand_raised(snapshot(left_y=0.9 * HEIGHT, right_y=0.2 * HEIGHT))

    def test_line_is_exclusive_at_sixty_percent(self):
        det = StartGestureDetector(field_height=HEIGHT)

        assert not det.hand_raised(snapshot(left_y=0.6 * HEIGHT))
        assert det.hand_raised(snapshot(left_y=0.6 * HEIGHT - 1))

    def test_inactive_points_do_not_count(self):
        det = StartGestureDetector(field_height=HEIGHT)
        snap = TrackingSnapshot(left=TrackedPoint(x=0, y=10, active=False))

        assert not det.hand_raised(snap)


class TestCalibration:
    """All-or-nothing hold timer."""

    def test_completes_after_duration(self):
        det = StartGestureDetector(field_height=HEIGHT)
        raised = snapshot(left_y=0.5 * HEIGHT)

        assert det.update(raised, 1000.0) is False
        assert det.in_progress
        assert det.update(raised, 2000.0) is False
        assert det.progress == pytest.approx(0.5)
        assert det.update(raised, 3000.0) is True

        assert not det.in_progress
        assert det.progress == 0.0

    def test_drop_clears_progress(self):
        det = StartGestureDetector(field_height=HEIGHT)
        raised = snapshot(right_y=100)
        lowered = snapshot(right_y=700)

        det.update(raised, 0.0)
        det.update(raised, 1900.0)
        assert det.progress == pytest.approx(0.95)

        det.update(lowered, 1950.0)
        assert not det.in_progress
        assert det.progress == 0.0

        # No partial credit: the timer restarts from the next raise.
        assert det.update(raised, 2000.0) is False
        assert det.update(raised, 3999.0) is False
        assert det.update(raised, 4000.0) is True

    def test_progress_clamped(self):
        det = StartGestureDetector(field_height=HEIGHT, duration_ms=100.0)
        raised = snapshot(left_y=10)

        det.update(raised, 0.0)
        det.update(raised, 50.0)

        assert 0.0 <= det.progress <= 1.0
