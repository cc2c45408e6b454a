from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2

from .model_assets import ensure_pose_landmarker_task
from .types import Keypoint

logger = logging.getLogger(__name__)


class PoseUnavailableError(RuntimeError):
    """Local pose estimation cannot run in this environment."""


# COCO-17 keypoints as (name, MediaPipe Pose landmark index).
COCO_KEYPOINTS: List[Tuple[str, int]] = [
    ("nose", 0),
    ("left_eye", 2),
    ("right_eye", 5),
    ("left_ear", 7),
    ("right_ear", 8),
    ("left_shoulder", 11),
    ("right_shoulder", 12),
    ("left_elbow", 13),
    ("right_elbow", 14),
    ("left_wrist", 15),
    ("right_wrist", 16),
    ("left_hip", 23),
    ("right_hip", 24),
    ("left_knee", 25),
    ("right_knee", 26),
    ("left_ankle", 27),
    ("right_ankle", 28),
]


def keypoints_from_landmarks(landmarks: Sequence, width: int, height: int) -> List[Keypoint]:
    """Map MediaPipe's 33 normalized landmarks onto COCO-17 pixel keypoints."""
    out: List[Keypoint] = []
    for coco_idx, (name, mp_idx) in enumerate(COCO_KEYPOINTS):
        if mp_idx >= len(landmarks):
            continue
        lm = landmarks[mp_idx]
        out.append(
            Keypoint(
                name=name,
                index=coco_idx,
                x=float(lm.x) * width,
                y=float(lm.y) * height,
                confidence=float(getattr(lm, "visibility", 0.0) or 0.0),
            )
        )
    return out


@dataclass(frozen=True)
class _SolutionsBackend:
    mp: object
    pose: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    landmarker: object


def _try_create_solutions_backend(
    model_complexity: int,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    pose = mp.solutions.pose.Pose(
        static_image_mode=False,
        model_complexity=model_complexity,
        min_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _SolutionsBackend(mp=mp, pose=pose)


def _try_create_tasks_backend(
    model_path: str,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> _TasksBackend:
    """Fallback for MediaPipe builds without `mp.solutions` (needs a `.task` file)."""

    import mediapipe as mp  # type: ignore
    from mediapipe.tasks.python import BaseOptions  # type: ignore
    from mediapipe.tasks.python.vision import PoseLandmarker, PoseLandmarkerOptions, RunningMode  # type: ignore

    model_path = ensure_pose_landmarker_task(model_path)
    options = PoseLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=RunningMode.VIDEO,
        num_poses=1,
        min_pose_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _TasksBackend(mp=mp, landmarker=PoseLandmarker.create_from_options(options))


class PoseWristSource:
    """
    Single-person pose estimation with MediaPipe.

    Input frames are **BGR** (OpenCV default). Output keypoints are in the
    frame's pixel space with COCO-17 names and indices.
    """

    def __init__(
        self,
        model_complexity: int = 0,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        tasks_model_path: str = "models/pose_landmarker_lite.task",
    ) -> None:
        self._solutions: Optional[_SolutionsBackend] = None
        self._tasks: Optional[_TasksBackend] = None
        self._tasks_timestamp_ms = 0

        try:
            self._solutions = _try_create_solutions_backend(
                model_complexity=model_complexity,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        except ImportError as e:
            raise PoseUnavailableError("mediapipe is not importable in this environment") from e
        except Exception as e:
            raise PoseUnavailableError(f"MediaPipe Solutions Pose could not be initialized ({e}).") from e

        if self._solutions is None:
            try:
                self._tasks = _try_create_tasks_backend(
                    model_path=tasks_model_path,
                    min_detection_confidence=min_detection_confidence,
                    min_tracking_confidence=min_tracking_confidence,
                )
            except Exception as e:
                raise PoseUnavailableError(
                    "MediaPipe has no `mp.solutions` here and the Tasks PoseLandmarker fallback "
                    f"could not be initialized ({e})."
                ) from e
            logger.info("Pose backend: MediaPipe Tasks PoseLandmarker")
        else:
            logger.info("Pose backend: MediaPipe Solutions Pose")

    @property
    def backend(self) -> str:
        return "solutions" if self._solutions is not None else "tasks"

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.pose.close()
        if self._tasks is not None:
            self._tasks.landmarker.close()

    def __enter__(self) -> "PoseWristSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr) -> List[Keypoint]:
        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self._solutions is not None:
            results = self._solutions.pose.process(frame_rgb)
            if results.pose_landmarks is None:
                return []
            return keypoints_from_landmarks(results.pose_landmarks.landmark, w, h)

        mp = self._tasks.mp
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        # VIDEO mode requires monotonically increasing timestamps.
        self._tasks_timestamp_ms += 33
        result = self._tasks.landmarker.detect_for_video(mp_image, self._tasks_timestamp_ms)
        poses = getattr(result, "pose_landmarks", None) or []
        if not poses:
            return []
        return keypoints_from_landmarks(poses[0], w, h)
