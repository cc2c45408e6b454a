from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from . import config as cfg
from .entities import BallManager
from .gesture import StartGestureDetector
from .types import Ball, GameState, TrackingSnapshot
from .utils import monotonic_ms

logger = logging.getLogger(__name__)

EventListener = Callable[[str, dict], None]


@dataclass
class GameSession:
    state: GameState = GameState.WAITING
    score: int = 0
    level: int = 1
    level_ball_count: int = cfg.START_BALL_COUNT
    level_speed: float = cfg.START_BALL_SPEED
    level_ball_size: float = cfg.START_BALL_SIZE

    def advance_level(self) -> None:
        self.level += 1
        self.level_ball_count = min(self.level_ball_count + cfg.BALL_COUNT_STEP, cfg.BALL_COUNT_CAP)
        self.level_speed = min(self.level_speed + cfg.BALL_SPEED_STEP, cfg.BALL_SPEED_CAP)
        self.level_ball_size = max(self.level_ball_size - cfg.BALL_SIZE_STEP, cfg.BALL_SIZE_FLOOR)


@dataclass
class DeferredAction:
    """A one-shot action due at `due_ms`, polled from the tick."""

    due_ms: float
    action: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def poll(self, now_ms: float) -> bool:
        if not self.pending or now_ms < self.due_ms:
            return False
        self.fired = True
        self.action()
        return True


class Game:
    """
    waiting -> playing -> gameOver -> waiting.

    Owns the one live GameSession, the entity manager and the start gesture
    detector. Transitions are reported to `listener` as (event_type, payload).
    """

    def __init__(
        self,
        width: float,
        height: float,
        clock: Callable[[], float] = monotonic_ms,
        rng: Optional[np.random.Generator] = None,
        listener: Optional[EventListener] = None,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.clock = clock
        self.listener = listener
        self.session = GameSession()
        self.entities = BallManager(width, height, rng=rng)
        self.gesture = StartGestureDetector(field_height=self.height)
        self.pending_reset: Optional[DeferredAction] = None
        self.entities.seed(self.session.level_ball_count, self.session.level_ball_size, self.session.level_speed, self.clock())

    @property
    def state(self) -> GameState:
        return self.session.state

    @property
    def balls(self) -> List[Ball]:
        return self.entities.balls

    def _emit(self, event_type: str, **payload) -> None:
        if self.listener is None:
            return
        try:
            self.listener(event_type, payload)
        except Exception:
            logger.exception("Event listener failed for %s", event_type)

    def _reseed(self, now_ms: float) -> None:
        s = self.session
        self.entities.clear()
        self.entities.seed(s.level_ball_count, s.level_ball_size, s.level_speed, now_ms)

    # --- transitions ---

    def start(self) -> bool:
        if self.session.state is not GameState.WAITING:
            logger.debug("Ignoring start while %s", self.session.state.value)
            return False

        now = self.clock()
        s = self.session
        s.state = GameState.PLAYING
        s.score = 0
        self.gesture.reset()
        self._reseed(now)
        for _ in range(cfg.IMMEDIATE_BALLS_ON_START):
            self.entities.spawn_immediate(s.level_ball_size, s.level_speed)
        logger.info("Game started (level %d)", s.level)
        self._emit("gameStateChange", state=s.state.value)
        return True

    def reset(self) -> None:
        if self.pending_reset is not None:
            self.pending_reset.cancel()
            self.pending_reset = None

        was = self.session.state
        self.session = GameSession()
        self.gesture.reset()
        self._reseed(self.clock())
        if was is not GameState.WAITING:
            logger.info("Game reset from %s", was.value)
        self._emit("gameStateChange", state=self.session.state.value)

    def _complete_level(self, now_ms: float) -> None:
        s = self.session
        s.advance_level()
        self._reseed(now_ms)
        logger.info(
            "Level %d: %d balls, speed %.1f, size %.0f",
            s.level,
            s.level_ball_count,
            s.level_speed,
            s.level_ball_size,
        )
        self._emit("levelChange", level=s.level)
        self._emit("gameStateChange", state=s.state.value)

    def _game_over(self, now_ms: float) -> None:
        s = self.session
        s.state = GameState.GAME_OVER
        self.pending_reset = DeferredAction(due_ms=now_ms + cfg.GAME_OVER_RESET_DELAY_MS, action=self.reset)
        logger.info("Game over: score %d at level %d", s.score, s.level)
        self._emit("gameStateChange", state=s.state.value)
        self._emit("gameOver", score=s.score)

    # --- per tick ---

    def probe(self, x, y) -> List[Ball]:
        """Collision probe at (x, y); only acts while playing."""
        if self.session.state is not GameState.PLAYING:
            return []
        hits = self.entities.check_collision(x, y)
        for ball in hits:
            self.session.score += 1
            self._emit(
                "ballHit",
                position={"x": int(round(ball.x)), "y": int(round(ball.y))},
                score=self.session.score,
            )
        return hits

    def update(self, snapshot: TrackingSnapshot) -> None:
        now = self.clock()

        if self.pending_reset is not None and self.pending_reset.poll(now):
            self.pending_reset = None

        state = self.session.state
        if state is GameState.WAITING:
            if self.gesture.update(snapshot, now):
                self.start()
        elif state is GameState.PLAYING:
            self._update_playing(snapshot, now)

        self.entities.update_effects()

    def _update_playing(self, snapshot: TrackingSnapshot, now: float) -> None:
        s = self.session
        retired = self.entities.retire_offscreen()

        if not self.entities.balls:
            if any(not b.touched for b in retired):
                self._game_over(now)
                return
            self._complete_level(now)
        elif self.entities.all_touched():
            self._complete_level(now)

        self.entities.apply_spawn_policy(s.level_ball_size, s.level_speed, now)
        self.entities.move()

        for pt in (snapshot.left, snapshot.right):
            if pt.active:
                self.probe(pt.x, pt.y)
