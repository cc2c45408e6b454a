"""Tests for mapping MediaPipe landmarks onto COCO-17 keypoints."""
import sys
from types import SimpleNamespace

import pytest

from motionpop.app import MotionPopApp
from motionpop.config import GameSettings
from motionpop.pose import COCO_KEYPOINTS, PoseUnavailableError, PoseWristSource, keypoints_from_landmarks
from motionpop.tracking import MODEL_EXTERNAL_ONLY, TrackingArbiter, wrist_for_keypoint
from motionpop.types import TrackingSource, Wrist


def landmarks(n=33):
    return [SimpleNamespace(x=i / 100.0, y=i / 50.0, z=0.0, visibility=0.5 + i / 100.0) for i in range(n)]


class TestKeypointMapping:
    def test_coco_order_and_pixels(self):
        kps = keypoints_from_landmarks(landmarks(), width=1000, height=500)

        assert [k.name for k in kps] == [name for name, _ in COCO_KEYPOINTS]
        assert [k.index for k in kps] == list(range(17))
        left = kps[9]
        assert left.name == "left_wrist"
        assert left.x == pytest.approx(150.0)
        assert left.y == pytest.approx(150.0)
        assert left.confidence == pytest.approx(0.65)

    def test_wrists_resolve(self):
        kps = keypoints_from_landmarks(landmarks(), width=640, height=480)

        wrists = {wrist_for_keypoint(k) for k in kps} - {None}

        assert wrists == {Wrist.LEFT, Wrist.RIGHT}

    def test_missing_visibility_reads_as_zero(self):
        lms = [SimpleNamespace(x=0.5, y=0.5) for _ in range(33)]

        kps = keypoints_from_landmarks(lms, width=100, height=100)

        assert all(k.confidence == 0.0 for k in kps)

    def test_short_landmark_list(self):
        kps = keypoints_from_landmarks(landmarks(12), width=100, height=100)

        assert [k.name for k in kps] == ["nose", "left_eye", "right_eye", "left_ear", "right_ear", "left_shoulder"]

    def test_feeds_arbiter(self):
        arbiter = TrackingArbiter()

        arbiter.ingest_local_pose(keypoints_from_landmarks(landmarks(), width=1000, height=500))

        assert arbiter.snapshot.left.active
        assert arbiter.snapshot.right.x == pytest.approx(160.0)


@pytest.fixture
def broken_mediapipe(monkeypatch):
    def failing_pose(**kwargs):
        raise RuntimeError("calculator graph failed to start")

    fake = SimpleNamespace(solutions=SimpleNamespace(pose=SimpleNamespace(Pose=failing_pose)))
    monkeypatch.setitem(sys.modules, "mediapipe", fake)
    return fake


class TestBackendFailure:
    def test_graph_start_failure_is_unavailable(self, broken_mediapipe):
        with pytest.raises(PoseUnavailableError, match="calculator graph"):
            PoseWristSource()

    def test_app_falls_back_to_external(self, broken_mediapipe, clock, rng):
        app = MotionPopApp(GameSettings(width=640, height=480), clock=clock, rng=rng)

        assert app.init_pose(PoseWristSource) is False

        assert app.pose is None
        assert app.arbiter.source is TrackingSource.EXTERNAL
        assert app.arbiter.model_status == MODEL_EXTERNAL_ONLY
