from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

import numpy as np

from . import drawing
from .config import GameSettings
from .game import Game
from .messages import Config, MessageRouter, MessageType, SetWrist
from .pose import PoseUnavailableError, PoseWristSource
from .telemetry import TelemetryPublisher, build_state_payload
from .tracking import TrackingArbiter
from .transport import SensorLink
from .types import GameState, TrackingSource
from .utils import monotonic_ms, point_in_rect

logger = logging.getLogger(__name__)


class MotionPopApp:
    """
    Wires tracking, game logic, rendering and telemetry into one tick.

    Tick order: ingest (sensor messages, local pose), game update, render,
    throttled telemetry. Collaborator failures are logged and never escape
    the tick.
    """

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        link: Optional[SensorLink] = None,
        clock: Callable[[], float] = monotonic_ms,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.settings = settings or GameSettings()
        self.clock = clock
        self.link = link
        self.pose: Optional[PoseWristSource] = None
        self.fps = 0.0
        self._last_tick_ms: Optional[float] = None
        self._link_was_connected = False

        s = self.settings
        self.arbiter = TrackingArbiter(
            source=s.tracking_source,
            auto_switch=s.auto_switch_to_external,
            reset_history_on_switch=s.reset_history_on_switch,
        )
        self.publisher = TelemetryPublisher(sink=self._send, is_attached=self._attached, clock=clock)
        self.game = Game(s.width, s.height, clock=clock, rng=rng, listener=self.publisher.publish_event)
        self.router = MessageRouter(
            {
                MessageType.PING: lambda _msg: self.publisher.publish_event("pong"),
                MessageType.SET_WRIST: self._on_set_wrist,
                MessageType.CONFIG: self._on_config,
                MessageType.START_GAME: lambda _msg: self.game.start(),
                MessageType.RESET_GAME: lambda _msg: self.game.reset(),
            }
        )

    # --- collaborators ---

    def init_pose(self, factory: Callable[[], PoseWristSource] = PoseWristSource) -> bool:
        """Create the local pose source, or fall back to external-only mode."""
        try:
            self.pose = factory()
        except PoseUnavailableError as e:
            logger.warning("Pose detection unavailable, using external sensors only: %s", e)
            self.pose = None
            self.arbiter.mark_local_unavailable()
            self.settings.tracking_source = TrackingSource.EXTERNAL
            return False
        self.arbiter.mark_local_ready()
        return True

    def close(self) -> None:
        if self.pose is not None:
            self.pose.close()
            self.pose = None
        if self.link is not None:
            self.link.stop()

    def _attached(self) -> bool:
        return self.link is not None and self.link.connected

    def _send(self, data: bytes) -> bool:
        return self.link.send(data.decode("utf-8"))

    # --- inbound messages ---

    def _on_set_wrist(self, msg: SetWrist) -> None:
        self.arbiter.ingest_external(msg.wrist, msg.x, msg.y, msg.active)
        self.settings.tracking_source = self.arbiter.source

    def _on_config(self, msg: Config) -> None:
        if msg.use_external_sensors is not None:
            wanted = TrackingSource.EXTERNAL if msg.use_external_sensors else TrackingSource.LOCAL
            self.arbiter.set_source(wanted)
            self.settings.tracking_source = self.arbiter.source
        if msg.debug_mode is not None:
            self.settings.debug_mode = msg.debug_mode

    # --- tick ---

    def state_payload(self) -> Dict[str, object]:
        s = self.game.session
        return build_state_payload(self.arbiter.snapshot, s.score, s.level, s.state, self.game.balls)

    def ingest(self, frame=None) -> None:
        if self.link is not None:
            connected = self.link.connected
            if connected and not self._link_was_connected:
                self.publisher.publish_connection(self.settings.width, self.settings.height)
            self._link_was_connected = connected
            for raw in self.link.drain():
                try:
                    self.router.handle_raw(raw)
                except Exception:
                    logger.exception("Failed to apply inbound message")

        if frame is not None and self.pose is not None and self.arbiter.source is TrackingSource.LOCAL:
            try:
                keypoints = self.pose.detect(frame)
            except Exception:
                logger.exception("Pose detection failed")
                return
            self.arbiter.ingest_local_pose(keypoints)

    def tick(self, frame=None):
        now = self.clock()
        if self._last_tick_ms is not None:
            dt = max(1e-3, now - self._last_tick_ms)
            inst = 1000.0 / dt
            self.fps = 0.85 * self.fps + 0.15 * inst if self.fps > 0 else inst
        self._last_tick_ms = now

        self.ingest(frame)
        self.game.update(self.arbiter.snapshot)
        if frame is not None:
            try:
                self.render(frame)
            except Exception:
                logger.exception("Render failed")
        try:
            self.publisher.tick(self.state_payload)
        except Exception:
            logger.exception("Telemetry tick failed")
        return frame

    def render(self, frame):
        game = self.game
        s = game.session
        snap = self.arbiter.snapshot
        button = self.settings.reset_button_rect()

        if s.state is GameState.WAITING:
            drawing.draw_waiting_screen(frame, game.gesture.raise_line, game.gesture.progress)
            drawing.draw_balls(frame, game.balls, s.state)
            drawing.draw_wrists(frame, snap, raise_line=game.gesture.raise_line)
        elif s.state is GameState.PLAYING:
            drawing.draw_balls(frame, game.balls, s.state)
            drawing.draw_effects(frame, game.entities.particles, game.entities.score_texts)
            drawing.draw_wrists(frame, snap)
            drawing.draw_hud(frame, s.score, s.level)
            drawing.draw_reset_button(frame, button)
        else:
            drawing.draw_game_over_screen(frame, s.score, s.level)
            drawing.draw_reset_button(frame, button)

        if self.settings.debug_mode:
            drawing.draw_debug(
                frame,
                self.fps,
                s.state,
                self.arbiter.source.value,
                self._attached(),
                self.arbiter.model_status,
            )
        return frame

    # --- user input ---

    def on_click(self, x: float, y: float) -> str:
        return self.on_touches([(x, y)])

    def on_touches(self, points: Iterable[Tuple[float, float]]) -> str:
        points = list(points)
        button = self.settings.reset_button_rect()
        if any(point_in_rect(x, y, button) for x, y in points):
            self.game.reset()
            return "reset"
        if self.game.state is GameState.WAITING:
            self.game.start()
            return "start"
        for x, y in points:
            self.game.probe(x, y)
        return "probe"

    def on_key(self, key: str) -> Optional[str]:
        if key in ("r", "R"):
            self.game.reset()
            return "reset"
        if key == " " and self.game.state is GameState.WAITING:
            self.game.start()
            return "start"
        if key in ("d", "D"):
            self.settings.debug_mode = not self.settings.debug_mode
            return "debug"
        return None
