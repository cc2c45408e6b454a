from __future__ import annotations

from dataclasses import dataclass

from .types import TrackingSource


# --- Tracking knobs ---
HISTORY_LENGTH = 5
MIN_KEYPOINT_CONFIDENCE = 0.2

# --- Start gesture knobs ---
RAISE_LINE_FRACTION = 0.6  # upper 60% of the field counts as "raised"
CALIBRATION_DURATION_MS = 2000.0

# --- Level knobs ---
START_BALL_COUNT = 5
START_BALL_SPEED = 1.0
START_BALL_SIZE = 40.0
BALL_COUNT_STEP = 2
BALL_COUNT_CAP = 15
BALL_SPEED_STEP = 0.5
BALL_SPEED_CAP = 5.0
BALL_SIZE_STEP = 2.0
BALL_SIZE_FLOOR = 20.0

# --- Ball spawn / motion knobs ---
SPAWN_INTERVAL_MS = 1000.0
MIN_BALLS_BEFORE_SPAWN = 5
MAX_BALLS = 15
MIN_VISIBLE_BALLS = 3
IMMEDIATE_BALLS_ON_START = 3
TOP_SPAWN_Y = -20.0
DRIFT_EVERY_N_TICKS = 3
DRIFT_RANGE = 0.3

# --- Collision knobs ---
HIT_PADDING = 60.0  # generous, tracking is noisy
HIT_GROWTH = 1.5
PARTICLES_PER_HIT = 10
MAX_PARTICLES = 30
MAX_SCORE_TEXTS = 15

# --- Effect knobs ---
PARTICLE_LIFE = 255.0
PARTICLE_FADE = 12.0
PARTICLE_GRAVITY = 0.1
SCORE_TEXT_MAX_AGE = 40.0
SCORE_TEXT_AGE_STEP = 1.5
SCORE_TEXT_RISE = 2.0

# --- Game over ---
GAME_OVER_RESET_DELAY_MS = 3000.0

# --- Telemetry / transport ---
TELEMETRY_INTERVAL_MS = 33.0  # ~30 updates per second
KEEPALIVE_INTERVAL_MS = 3000.0
SENSOR_PORT = 7000
RECONNECT_DELAY_S = 2.0
MAX_RECONNECT_ATTEMPTS = 5

# --- UI ---
RESET_BUTTON_SIZE = (100, 40)
RESET_BUTTON_MARGIN = 10


@dataclass
class GameSettings:
    """Runtime configuration. The `config` message mutates a live instance."""

    width: int = 1280
    height: int = 720
    debug_mode: bool = False
    tracking_source: TrackingSource = TrackingSource.LOCAL
    auto_switch_to_external: bool = True
    reset_history_on_switch: bool = False
    sensor_host: str = "localhost"
    sensor_port: int = SENSOR_PORT
    auto_connect: bool = True
    pose_model_path: str = "models/pose_landmarker_lite.task"

    @property
    def sensor_url(self) -> str:
        return f"ws://{self.sensor_host}:{self.sensor_port}"

    def reset_button_rect(self):
        bw, bh = RESET_BUTTON_SIZE
        x0 = self.width - bw - RESET_BUTTON_MARGIN
        y0 = self.height - bh - RESET_BUTTON_MARGIN
        return (x0, y0, x0 + bw, y0 + bh)
