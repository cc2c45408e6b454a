from __future__ import annotations

import math
import time
from typing import Tuple


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def is_finite_point(x, y) -> bool:
    try:
        return math.isfinite(float(x)) and math.isfinite(float(y))
    except (TypeError, ValueError):
        return False


def point_in_rect(x: float, y: float, rect: Tuple[int, int, int, int]) -> bool:
    x0, y0, x1, y1 = rect
    return x0 < x < x1 and y0 < y < y1


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0
