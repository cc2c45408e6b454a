from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class GameState(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    GAME_OVER = "gameOver"


class TrackingSource(str, Enum):
    LOCAL = "local"
    EXTERNAL = "external"


class Wrist(str, Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Keypoint:
    """A single pose keypoint in field pixel coordinates."""

    name: str
    index: int  # COCO-17 ordering
    x: float
    y: float
    confidence: float


@dataclass
class TrackedPoint:
    x: float = 0.0
    y: float = 0.0
    active: bool = False


@dataclass
class TrackingSnapshot:
    """Best-known wrist positions for the current tick."""

    left: TrackedPoint = field(default_factory=TrackedPoint)
    right: TrackedPoint = field(default_factory=TrackedPoint)

    def point(self, wrist: Wrist) -> TrackedPoint:
        return self.left if wrist is Wrist.LEFT else self.right

    def deactivate(self) -> None:
        self.left.active = False
        self.right.active = False

    def as_dict(self) -> dict:
        return {
            "left": {"x": self.left.x, "y": self.left.y, "active": self.left.active},
            "right": {"x": self.right.x, "y": self.right.y, "active": self.right.active},
        }


@dataclass
class Ball:
    x: float
    y: float
    size: float
    speed: float
    touched: bool = False


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    size: float
    life: float = 255.0


@dataclass
class ScoreText:
    x: float
    y: float
    age: float = 0.0
    max_age: float = 40.0


@dataclass
class CalibrationProgress:
    """Exists only while the start gesture is being held."""

    started_at: Optional[float] = None
    progress: float = 0.0
