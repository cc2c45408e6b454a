from __future__ import annotations

from typing import List, Optional

import numpy as np

from . import config as cfg
from .types import Ball, Particle, ScoreText
from .utils import is_finite_point


class BallManager:
    """
    Owns balls, hit particles and floating score texts.

    Level parameters (`ball_size`, `ball_speed`) are passed in by the caller so
    the manager never reads the session directly.
    """

    def __init__(self, width: float, height: float, rng: Optional[np.random.Generator] = None) -> None:
        self.width = float(width)
        self.height = float(height)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.balls: List[Ball] = []
        self.particles: List[Particle] = []
        self.score_texts: List[ScoreText] = []
        self.last_spawn_ms = 0.0
        self.tick_count = 0

    def _uniform(self, lo: float, hi: float) -> float:
        if hi <= lo:
            return float(lo)
        return float(self.rng.uniform(lo, hi))

    # --- spawning ---

    def clear(self) -> None:
        self.balls = []

    def seed(self, count: int, ball_size: float, ball_speed: float, now_ms: float) -> None:
        """Staggered set of balls just above the top edge."""
        for _ in range(count):
            self.balls.append(
                Ball(
                    x=self._uniform(20, self.width - 20),
                    y=self._uniform(-100, -20),
                    size=self._uniform(ball_size - 10, ball_size + 10),
                    speed=self._uniform(ball_speed, ball_speed + 3),
                )
            )
        self.last_spawn_ms = now_ms

    def spawn_top(self, ball_size: float, ball_speed: float, now_ms: float) -> Ball:
        ball = Ball(
            x=self._uniform(20, self.width - 20),
            y=cfg.TOP_SPAWN_Y,
            size=self._uniform(ball_size - 10, ball_size + 10),
            speed=self._uniform(ball_speed, ball_speed + 3),
        )
        self.balls.append(ball)
        self.last_spawn_ms = now_ms
        return ball

    def spawn_immediate(self, ball_size: float, ball_speed: float) -> Ball:
        # Mid-field, visible right away.
        ball = Ball(
            x=self._uniform(50, self.width - 50),
            y=self._uniform(100, self.height - 200),
            size=self._uniform(ball_size, ball_size + 20),
            speed=self._uniform(ball_speed, ball_speed + 2),
        )
        self.balls.append(ball)
        return ball

    def apply_spawn_policy(self, ball_size: float, ball_speed: float, now_ms: float) -> None:
        n = len(self.balls)
        due = (now_ms - self.last_spawn_ms) > cfg.SPAWN_INTERVAL_MS
        if (due or n < cfg.MIN_BALLS_BEFORE_SPAWN) and n < cfg.MAX_BALLS:
            self.spawn_top(ball_size, ball_speed, now_ms)
        if len(self.balls) < cfg.MIN_VISIBLE_BALLS:
            self.spawn_immediate(ball_size, ball_speed)

    # --- per tick ---

    def retire_offscreen(self) -> List[Ball]:
        kept: List[Ball] = []
        retired: List[Ball] = []
        for b in self.balls:
            if b.y < self.height + b.size:
                kept.append(b)
            else:
                retired.append(b)
        self.balls = kept
        return retired

    def move(self) -> None:
        self.tick_count += 1
        drift = self.tick_count % cfg.DRIFT_EVERY_N_TICKS == 0
        for b in self.balls:
            b.y += b.speed
            if drift:
                b.x += self._uniform(-cfg.DRIFT_RANGE, cfg.DRIFT_RANGE)

    def update_effects(self) -> None:
        for p in self.particles:
            p.x += p.vx
            p.y += p.vy
            p.vy += cfg.PARTICLE_GRAVITY
            p.life -= cfg.PARTICLE_FADE
        self.particles = [p for p in self.particles if p.life > 0]

        for t in self.score_texts:
            t.y -= cfg.SCORE_TEXT_RISE
            t.age += cfg.SCORE_TEXT_AGE_STEP
        self.score_texts = [t for t in self.score_texts if t.age < t.max_age]

    # --- collisions ---

    def check_collision(self, x, y) -> List[Ball]:
        """
        Latch every untouched ball within reach of (x, y).

        A touched ball pops bigger and faster and emits particles and a score text
        while under the cap. Returns the newly touched balls.
        """
        if not is_finite_point(x, y):
            return []
        x = float(x)
        y = float(y)

        hits: List[Ball] = []
        for ball in self.balls:
            if ball.touched:
                continue
            dx = x - ball.x
            dy = y - ball.y
            reach = ball.size / 2 + cfg.HIT_PADDING
            if dx * dx + dy * dy >= reach * reach:
                continue

            ball.touched = True
            if len(self.score_texts) < cfg.MAX_SCORE_TEXTS:
                self.score_texts.append(ScoreText(x=ball.x, y=ball.y, max_age=cfg.SCORE_TEXT_MAX_AGE))
            ball.size *= cfg.HIT_GROWTH
            ball.speed *= cfg.HIT_GROWTH
            self._burst(ball.x, ball.y)
            hits.append(ball)
        return hits

    def _burst(self, x: float, y: float) -> None:
        n = min(cfg.PARTICLES_PER_HIT, cfg.MAX_PARTICLES - len(self.particles))
        for _ in range(max(0, n)):
            self.particles.append(
                Particle(
                    x=x,
                    y=y,
                    vx=self._uniform(-2, 2),
                    vy=self._uniform(-4, 0),
                    size=self._uniform(5, 10),
                    life=cfg.PARTICLE_LIFE,
                )
            )

    def all_touched(self) -> bool:
        return bool(self.balls) and all(b.touched for b in self.balls)
