from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, List, Optional, Union

from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from .config import MAX_RECONNECT_ATTEMPTS, RECONNECT_DELAY_S

logger = logging.getLogger(__name__)

Raw = Union[bytes, str]


class SensorLink:
    """
    WebSocket client to the external motion-sensing application.

    Receiving runs on a daemon thread; messages are buffered in a queue and
    drained by the tick thread. Reconnects are bounded: after
    `max_attempts` consecutive failures the link gives up and the game keeps
    running on whatever tracking is still available.
    """

    def __init__(
        self,
        url: str,
        max_attempts: int = MAX_RECONNECT_ATTEMPTS,
        retry_delay_s: float = RECONNECT_DELAY_S,
        auto_reconnect: bool = True,
        connect: Callable[..., object] = ws_connect,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url
        self.max_attempts = max_attempts
        self.retry_delay_s = retry_delay_s
        self.auto_reconnect = auto_reconnect
        self._connect = connect
        self._sleep = sleep

        self.attempts = 0
        self.gave_up = False
        self._ws = None
        self._connected = threading.Event()
        self._stop = threading.Event()
        self._inbox: "queue.SimpleQueue[Raw]" = queue.SimpleQueue()
        self._thread: Optional[threading.Thread] = None

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self.gave_up = False
        self.attempts = 0
        self._thread = threading.Thread(target=self.run, name="sensor-link", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        ws = self._ws
        if ws is not None:
            try:
                ws.close()
            except Exception:
                logger.debug("Error closing sensor link", exc_info=True)
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None

    def run(self) -> None:
        """Connect/receive loop; returns once stopped or out of attempts."""
        while not self._stop.is_set():
            try:
                with self._connect(self.url) as ws:
                    self._ws = ws
                    self._session(ws)
            except Exception as e:
                logger.debug("Sensor link connect to %s failed: %s", self.url, e)

            self._ws = None
            self._connected.clear()
            if self._stop.is_set():
                break
            if not self.auto_reconnect or self.attempts >= self.max_attempts:
                self.gave_up = True
                logger.warning("Sensor link to %s unavailable; continuing without it", self.url)
                break
            self.attempts += 1
            logger.info("Sensor link disconnected; retry %d/%d in %.1fs", self.attempts, self.max_attempts, self.retry_delay_s)
            self._sleep(self.retry_delay_s)

    def _session(self, ws) -> None:
        self.attempts = 0
        self._connected.set()
        logger.info("Sensor link connected to %s", self.url)
        try:
            for raw in ws:
                self._inbox.put(raw)
        except ConnectionClosed:
            pass
        except Exception:
            logger.exception("Sensor link receive loop failed")

    def send(self, data: Raw) -> bool:
        ws = self._ws
        if ws is None or not self.connected:
            return False
        try:
            ws.send(data)
        except Exception as e:
            logger.warning("Sensor link send failed: %s", e)
            return False
        return True

    def drain(self) -> List[Raw]:
        out: List[Raw] = []
        while True:
            try:
                out.append(self._inbox.get_nowait())
            except queue.Empty:
                return out

    def __enter__(self) -> "SensorLink":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
