import numpy as np
import pytest


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 10_000.0):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return np.random.default_rng(42)
