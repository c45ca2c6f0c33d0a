"""
Rolling per-arm success-rate estimator.
"""

from __future__ import annotations

from collections import deque


class RollingEstimator:
    """
    Bounded success/failure history per arm.

    Each arm keeps at most ``window_size`` outcomes; once full, the oldest one
    is evicted before the new one is admitted. An empty window estimates 0.0,
    which callers must read as "unknown" rather than "proven worst".
    """

    def __init__(self, n_arms: int, window_size: int = 20):
        if n_arms <= 0:
            raise ValueError("n_arms must be positive.")
        if window_size <= 0:
            raise ValueError("window_size must be positive.")
        self.n_arms = int(n_arms)
        self.window_size = int(window_size)
        self._windows: list[deque[bool]] = [deque(maxlen=self.window_size) for _ in range(self.n_arms)]

    def record(self, arm_index: int, survived: bool) -> None:
        self._windows[arm_index].append(bool(survived))

    def estimate(self, arm_index: int) -> float:
        window = self._windows[arm_index]
        return sum(window) / float(max(1, len(window)))

    def estimates(self) -> list[float]:
        return [self.estimate(idx) for idx in range(self.n_arms)]

    def count(self, arm_index: int) -> int:
        return len(self._windows[arm_index])

    def counts(self) -> list[int]:
        return [len(window) for window in self._windows]

    def window(self, arm_index: int) -> list[bool]:
        return list(self._windows[arm_index])

    def reset(self) -> None:
        for window in self._windows:
            window.clear()


__all__ = ["RollingEstimator"]
