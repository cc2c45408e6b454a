from __future__ import annotations

from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .types import Ball, GameState, Particle, ScoreText, TrackingSnapshot

# BGR
BALL_COLOR = (139, 0, 0)
TOUCHED_COLOR = (203, 192, 255)
LEFT_COLOR = (0, 255, 255)
RIGHT_COLOR = (255, 255, 0)
RAISED_COLOR = (0, 255, 0)
WHITE = (255, 255, 255)
YELLOW = (0, 255, 255)


def draw_text(frame, text: str, org: Tuple[int, int], color=WHITE, scale=0.6, thickness=2, center=False):
    if center:
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
        org = (int(org[0] - tw / 2), int(org[1] + th / 2))
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_rect_alpha(frame, rect: Tuple[int, int, int, int], color=(0, 0, 0), alpha: float = 0.6):
    h, w = frame.shape[:2]
    x0, y0, x1, y1 = rect
    x0, y0 = max(0, int(x0)), max(0, int(y0))
    x1, y1 = min(w, int(x1)), min(h, int(y1))
    if x1 <= x0 or y1 <= y0:
        return frame
    roi = frame[y0:y1, x0:x1]
    overlay = np.empty_like(roi)
    overlay[:] = color
    frame[y0:y1, x0:x1] = cv2.addWeighted(overlay, alpha, roi, 1.0 - alpha, 0)
    return frame


def draw_balls(frame, balls: Iterable[Ball], state: GameState):
    for b in balls:
        if state is not GameState.PLAYING and not b.touched:
            continue
        c = (int(round(b.x)), int(round(b.y)))
        r = max(1, int(b.size / 2))
        if b.touched:
            cv2.circle(frame, c, int(r * 1.3), TOUCHED_COLOR, 1, cv2.LINE_AA)
            cv2.circle(frame, c, r, TOUCHED_COLOR, -1, cv2.LINE_AA)
        else:
            cv2.circle(frame, c, r, BALL_COLOR, -1, cv2.LINE_AA)
    return frame


def draw_effects(frame, particles: Iterable[Particle], score_texts: Iterable[ScoreText]):
    for p in particles:
        shade = int(max(0.0, min(255.0, p.life)))
        cv2.circle(frame, (int(p.x), int(p.y)), max(1, int(p.size / 2)), (shade, shade, shade), -1)
    for t in score_texts:
        fade = max(0.0, 1.0 - t.age / t.max_age)
        draw_text(frame, "+1", (int(t.x), int(t.y)), color=(0, int(255 * fade), int(255 * fade)), center=True)
    return frame


def draw_wrists(frame, snapshot: TrackingSnapshot, raise_line: Optional[float] = None):
    for pt, color in ((snapshot.left, LEFT_COLOR), (snapshot.right, RIGHT_COLOR)):
        if not pt.active:
            continue
        if raise_line is not None and pt.y < raise_line:
            color = RAISED_COLOR
        cv2.circle(frame, (int(pt.x), int(pt.y)), 8, color, -1, cv2.LINE_AA)
    return frame


def draw_reset_button(frame, rect: Tuple[int, int, int, int]):
    draw_rect_alpha(frame, rect, alpha=0.6)
    x0, y0, x1, y1 = rect
    draw_text(frame, "Reset", ((x0 + x1) // 2, (y0 + y1) // 2), center=True)
    return frame


def draw_hud(frame, score: int, level: int):
    draw_rect_alpha(frame, (10, 10, 160, 60), alpha=0.6)
    draw_text(frame, f"Score: {score}", (20, 45), scale=0.9)
    draw_rect_alpha(frame, (10, 70, 160, 100), alpha=0.6)
    draw_text(frame, f"Level: {level}", (20, 92))
    return frame


def draw_waiting_screen(frame, raise_line: float, progress: float):
    h, w = frame.shape[:2]
    draw_rect_alpha(frame, (0, 0, w, h), alpha=0.7)
    draw_text(frame, "Motion Tracking Game", (w // 2, h // 3 - 50), scale=1.2, center=True)
    draw_text(frame, "Raise your hand to start", (w // 2, h // 2 - 40), scale=0.9, center=True)

    y = int(raise_line)
    cv2.line(frame, (0, y), (w, y), YELLOW, 3, cv2.LINE_AA)
    draw_text(frame, "Raise hand above this line", (20, y - 15), color=YELLOW)

    if progress > 0:
        x0 = w // 2 - 150
        y0 = int(h * 0.7)
        cv2.rectangle(frame, (x0, y0), (x0 + 300, y0 + 30), (100, 100, 100), -1)
        cv2.rectangle(frame, (x0, y0), (x0 + int(300 * min(1.0, progress)), y0 + 30), (0, 255, 0), -1)
        draw_text(frame, f"Starting: {int(progress * 100)}%", (w // 2, y0 + 15), center=True)
    return frame


def draw_game_over_screen(frame, score: int, level: int):
    h, w = frame.shape[:2]
    draw_rect_alpha(frame, (0, 0, w, h), alpha=0.8)
    draw_text(frame, "GAME OVER", (w // 2, h // 3), scale=1.6, thickness=3, center=True)
    draw_text(frame, f"Final Score: {score}", (w // 2, h // 2), scale=1.1, center=True)
    draw_text(frame, f"Level Reached: {level}", (w // 2, h // 2 + 50), scale=0.9, center=True)
    draw_text(frame, "Game will restart in a few seconds...", (w // 2, int(h * 0.7)), color=YELLOW, center=True)
    return frame


def draw_debug(frame, fps: float, state: GameState, source: str, link_connected: bool, model_status: str):
    h, w = frame.shape[:2]
    draw_text(frame, f"FPS: {fps:.0f}", (20, h - 20))
    draw_text(frame, f"Game State: {state.value.upper()}", (20, h - 45), color=YELLOW)
    draw_text(frame, f"INPUT: {source} ({model_status})", (w - 420, 70))
    link = "Sensor link connected" if link_connected else "Waiting for sensor link..."
    draw_text(frame, link, (w - 420, 95), color=(0, 255, 0) if link_connected else (0, 200, 255))
    return frame
