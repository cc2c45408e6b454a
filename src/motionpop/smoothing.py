from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from .config import HISTORY_LENGTH


class PositionSmoother:
    """
    Linearly weighted moving average per tracked point.

    Sample `i` of the history (0 = oldest) gets weight `i + 1`, so recent
    samples dominate without carrying any decay state beyond the buffer.
    """

    def __init__(self, history_length: int = HISTORY_LENGTH) -> None:
        if history_length < 1:
            raise ValueError("history_length must be >= 1")
        self.history_length = history_length
        self._history: Dict[str, Deque[Tuple[float, float]]] = {}

    def smooth(self, key: str, raw_x: float, raw_y: float) -> Tuple[float, float]:
        buf = self._history.get(key)
        if buf is None:
            buf = deque(maxlen=self.history_length)
            self._history[key] = buf
        buf.append((float(raw_x), float(raw_y)))

        sx = 0.0
        sy = 0.0
        total = 0
        for i, (x, y) in enumerate(buf):
            w = i + 1
            sx += x * w
            sy += y * w
            total += w
        return (sx / total, sy / total)

    def history(self, key: str) -> List[Tuple[float, float]]:
        return list(self._history.get(key, ()))

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._history.clear()
        else:
            self._history.pop(key, None)
