"""Tests for TrackingArbiter source selection and wrist narrowing."""
import math

from motionpop.tracking import MODEL_EXTERNAL_ONLY, MODEL_READY, TrackingArbiter
from motionpop.types import Keypoint, TrackingSource


def kp(name, index, x, y, confidence=0.9):
    return Keypoint(name=name, index=index, x=x, y=y, confidence=confidence)


class TestLocalIngestion:
    """Local pose results feed the snapshot only while LOCAL is selected."""

    def test_wrists_by_name(self):
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose([kp("left_wrist", 9, 100, 200), kp("rightWrist", 99, 300, 400)])

        snap = arbiter.snapshot
        assert (snap.left.x, snap.left.y, snap.left.active) == (100, 200, True)
        assert (snap.right.x, snap.right.y, snap.right.active) == (300, 400, True)

    def test_wrists_by_canonical_index(self):
        """Unnamed keypoints at COCO indices 9/10 are the wrists."""
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose([kp("", 9, 10, 20), kp("", 10, 30, 40)])

        assert arbiter.snapshot.left.active
        assert arbiter.snapshot.right.active

    def test_non_wrist_keypoints_ignored(self):
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose([kp("nose", 0, 1, 1), kp("left_elbow", 7, 2, 2), kp("right_hip", 12, 3, 3)])

        assert not arbiter.snapshot.left.active
        assert not arbiter.snapshot.right.active
        assert arbiter.smoother.history("left") == []

    def test_confidence_floor_is_exclusive(self):
        """Confidence must exceed 0.2; exactly 0.2 is rejected."""
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose([kp("left_wrist", 9, 1, 1, 0.2), kp("right_wrist", 10, 1, 1, 0.21)])

        assert not arbiter.snapshot.left.active
        assert arbiter.snapshot.right.active

    def test_stale_points_deactivated_each_cycle(self):
        """A wrist missing from the next cycle never reads as active."""
        arbiter = TrackingArbiter()
        arbiter.ingest_local_pose([kp("left_wrist", 9, 1, 1), kp("right_wrist", 10, 1, 1)])

        arbiter.ingest_local_pose([kp("right_wrist", 10, 5, 5)])
        assert not arbiter.snapshot.left.active
        assert arbiter.snapshot.right.active

        arbiter.ingest_local_pose([])
        assert not arbiter.snapshot.right.active

    def test_coordinates_are_smoothed(self):
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose([kp("left_wrist", 9, 0, 0)])
        arbiter.ingest_local_pose([kp("left_wrist", 9, 30, 60)])

        # (0*1 + 30*2) / 3, (0*1 + 60*2) / 3
        assert arbiter.snapshot.left.x == 20
        assert arbiter.snapshot.left.y == 40

    def test_ignored_in_external_mode(self):
        arbiter = TrackingArbiter(source=TrackingSource.EXTERNAL)

        assert arbiter.ingest_local_pose([kp("left_wrist", 9, 1, 1)]) is False
        assert not arbiter.snapshot.left.active


class TestExternalIngestion:
    """External samples and the explicit source setting."""

    def test_first_sample_switches_source(self):
        arbiter = TrackingArbiter()

        assert arbiter.ingest_external("left", 50, 60)

        assert arbiter.source is TrackingSource.EXTERNAL
        assert arbiter.snapshot.left.active
        assert (arbiter.snapshot.left.x, arbiter.snapshot.left.y) == (50, 60)

    def test_no_auto_switch_drops_sample(self):
        arbiter = TrackingArbiter(auto_switch=False)

        assert arbiter.ingest_external("left", 50, 60) is False

        assert arbiter.source is TrackingSource.LOCAL
        assert not arbiter.snapshot.left.active

    def test_inactive_flag_is_applied(self):
        arbiter = TrackingArbiter(source=TrackingSource.EXTERNAL)

        arbiter.ingest_external("right", 5, 5, active=False)

        assert not arbiter.snapshot.right.active

    def test_rejects_unknown_point_and_nan(self):
        arbiter = TrackingArbiter(source=TrackingSource.EXTERNAL)

        assert arbiter.ingest_external("nose", 1, 1) is False
        assert arbiter.ingest_external("left", math.nan, 1) is False
        assert arbiter.ingest_external("left", 1, math.inf) is False
        assert arbiter.smoother.history("left") == []

    def test_local_pose_ignored_after_switch(self):
        arbiter = TrackingArbiter()
        arbiter.ingest_external("left", 10, 10)

        arbiter.ingest_local_pose([kp("left_wrist", 9, 500, 500)])

        assert arbiter.snapshot.left.x == 10


class TestSourceSwitching:
    """History survives source switches unless configured otherwise."""

    def test_history_preserved_across_switch(self):
        arbiter = TrackingArbiter()
        arbiter.ingest_local_pose([kp("left_wrist", 9, 0, 0), kp("right_wrist", 10, 100, 100)])

        arbiter.ingest_external("left", 30, 30)

        assert arbiter.smoother.history("left") == [(0.0, 0.0), (30.0, 30.0)]
        assert arbiter.smoother.history("right") == [(100.0, 100.0)]
        assert arbiter.snapshot.left.x == 20

    def test_clean_cutover_when_configured(self):
        arbiter = TrackingArbiter(reset_history_on_switch=True)
        arbiter.ingest_local_pose([kp("left_wrist", 9, 0, 0)])

        arbiter.ingest_external("left", 30, 30)

        assert arbiter.smoother.history("left") == [(30.0, 30.0)]
        assert arbiter.snapshot.left.x == 30

    def test_switch_deactivates_snapshot(self):
        arbiter = TrackingArbiter()
        arbiter.ingest_local_pose([kp("left_wrist", 9, 0, 0), kp("right_wrist", 10, 0, 0)])

        arbiter.set_source(TrackingSource.EXTERNAL)

        assert not arbiter.snapshot.left.active
        assert not arbiter.snapshot.right.active

    def test_back_and_forth(self):
        arbiter = TrackingArbiter()

        assert arbiter.set_source(TrackingSource.EXTERNAL)
        assert arbiter.set_source(TrackingSource.LOCAL)
        assert arbiter.source is TrackingSource.LOCAL


class TestAvailability:
    def test_ready_status(self):
        arbiter = TrackingArbiter()

        arbiter.mark_local_ready()

        assert arbiter.model_status == MODEL_READY

    def test_unavailable_pins_external(self):
        arbiter = TrackingArbiter()

        arbiter.mark_local_unavailable()

        assert arbiter.source is TrackingSource.EXTERNAL
        assert arbiter.model_status == MODEL_EXTERNAL_ONLY
        assert arbiter.set_source(TrackingSource.LOCAL) is False
        assert arbiter.source is TrackingSource.EXTERNAL

        arbiter.mark_local_ready()
        assert arbiter.model_status == MODEL_EXTERNAL_ONLY
