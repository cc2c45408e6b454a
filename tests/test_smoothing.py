"""Tests for PositionSmoother."""
import pytest

from motionpop.smoothing import PositionSmoother


class TestPositionSmoother:
    """Weighted moving average over a bounded per-key history."""

    def test_single_sample_passes_through(self):
        """History of length 1 returns the sample unchanged."""
        smoother = PositionSmoother(history_length=5)

        assert smoother.smooth("left", 12.5, -3.0) == (12.5, -3.0)

    def test_linear_weights(self):
        """Sample i (0 = oldest) carries weight i + 1."""
        smoother = PositionSmoother(history_length=5)

        smoother.smooth("left", 0.0, 0.0)
        smoother.smooth("left", 10.0, 20.0)
        x, y = smoother.smooth("left", 20.0, 40.0)

        # (0*1 + 10*2 + 20*3) / 6
        assert x == pytest.approx(80.0 / 6.0)
        assert y == pytest.approx(160.0 / 6.0)

    def test_history_keeps_most_recent_in_order(self):
        """After M > N samples exactly the N most recent remain, oldest first."""
        smoother = PositionSmoother(history_length=5)

        for i in range(12):
            smoother.smooth("right", float(i), float(-i))

        assert smoother.history("right") == [(float(i), float(-i)) for i in range(7, 12)]

    def test_output_within_window_bounds(self):
        """Smoothed output stays within min/max of the retained samples."""
        smoother = PositionSmoother(history_length=4)
        samples = [(5, 100), (300, -20), (42, 7), (-80, 55), (120, 0), (9, 999)]

        for sx, sy in samples:
            x, y = smoother.smooth("k", sx, sy)
            window = smoother.history("k")
            xs = [p[0] for p in window]
            ys = [p[1] for p in window]
            assert min(xs) <= x <= max(xs)
            assert min(ys) <= y <= max(ys)

    def test_deterministic(self):
        """Same input sequence gives the same outputs."""
        seq = [(1, 2), (3, 5), (8, 13), (21, 34), (55, 89), (144, 233)]
        a = PositionSmoother()
        b = PositionSmoother()

        out_a = [a.smooth("w", x, y) for x, y in seq]
        out_b = [b.smooth("w", x, y) for x, y in seq]

        assert out_a == out_b

    def test_keys_are_independent(self):
        """Each key has its own buffer."""
        smoother = PositionSmoother()

        smoother.smooth("left", 100.0, 100.0)
        assert smoother.smooth("right", 0.0, 0.0) == (0.0, 0.0)
        assert len(smoother.history("left")) == 1

    def test_reset(self):
        smoother = PositionSmoother()
        smoother.smooth("left", 1.0, 1.0)
        smoother.smooth("right", 1.0, 1.0)

        smoother.reset("left")
        assert smoother.history("left") == []
        assert smoother.history("right") == [(1.0, 1.0)]

        smoother.reset()
        assert smoother.history("right") == []

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            PositionSmoother(history_length=0)
