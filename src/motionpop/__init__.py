from .app import MotionPopApp
from .config import GameSettings
from .game import Game, GameSession
from .smoothing import PositionSmoother
from .tracking import TrackingArbiter
from .types import Ball, GameState, TrackedPoint, TrackingSnapshot, TrackingSource

__all__ = [
    "MotionPopApp",
    "GameSettings",
    "Game",
    "GameSession",
    "PositionSmoother",
    "TrackingArbiter",
    "Ball",
    "GameState",
    "TrackedPoint",
    "TrackingSnapshot",
    "TrackingSource",
]
