from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import orjson

from .config import KEEPALIVE_INTERVAL_MS, TELEMETRY_INTERVAL_MS
from .types import Ball, GameState, TrackingSnapshot
from .utils import monotonic_ms

logger = logging.getLogger(__name__)

# Sent as soon as they happen; everything else is throttled.
IMMEDIATE_EVENTS = frozenset({"ping", "pong", "connection", "gameStateChange", "levelChange", "gameOver", "ballHit"})
TIMESTAMPED_EVENTS = frozenset({"ballHit", "levelChange", "gameOver"})


def build_state_payload(
    snapshot: TrackingSnapshot,
    score: int,
    level: int,
    state: GameState,
    balls: List[Ball],
) -> Dict[str, object]:
    return {
        "wrists": snapshot.as_dict(),
        "score": int(score),
        "level": int(level),
        "gameState": GameState(state).value,
        "balls": [{"x": int(round(b.x)), "y": int(round(b.y)), "touched": b.touched} for b in balls],
    }


class TelemetryPublisher:
    """
    Rate-limited exporter of reduced game state.

    `sink` receives encoded JSON bytes; `is_attached` reports whether an
    external consumer is listening. Nothing is encoded while detached.
    """

    def __init__(
        self,
        sink: Callable[[bytes], bool],
        is_attached: Callable[[], bool],
        clock: Callable[[], float] = monotonic_ms,
        interval_ms: float = TELEMETRY_INTERVAL_MS,
        keepalive_ms: float = KEEPALIVE_INTERVAL_MS,
    ) -> None:
        self.sink = sink
        self.is_attached = is_attached
        self.clock = clock
        self.interval_ms = interval_ms
        self.keepalive_ms = keepalive_ms
        self.last_update_ms = float("-inf")
        self.last_send_ms = float("-inf")
        self.sent = 0

    def send(self, message: Dict[str, object]) -> bool:
        if not self.is_attached():
            return False

        now = self.clock()
        mtype = message.get("type")
        if mtype not in IMMEDIATE_EVENTS and now - self.last_update_ms <= self.interval_ms:
            return False
        if mtype in TIMESTAMPED_EVENTS:
            message = dict(message, timestamp=int(now))

        try:
            ok = self.sink(orjson.dumps(message))
        except Exception:
            logger.exception("Telemetry send failed for %s", mtype)
            return False
        if ok is False:
            return False

        self.last_send_ms = now
        self.last_update_ms = now
        self.sent += 1
        return True

    def publish_event(self, event_type: str, payload: Optional[Dict[str, object]] = None) -> bool:
        message: Dict[str, object] = {"type": event_type}
        if payload:
            message.update(payload)
        return self.send(message)

    def publish_connection(self, width: int, height: int) -> bool:
        return self.publish_event("connection", {"status": "connected", "dimensions": [int(width), int(height)]})

    def tick(self, state_payload: Callable[[], Dict[str, object]]) -> bool:
        """Throttled state update plus keepalive. Returns True if an update went out."""
        if not self.is_attached():
            return False

        now = self.clock()
        sent = False
        if now - self.last_update_ms > self.interval_ms:
            sent = self.send({"type": "trackingUpdate", "data": state_payload()})

        if now - self.last_send_ms > self.keepalive_ms:
            self.send({"type": "ping"})
        return sent
