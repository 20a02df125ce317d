"""
Random variable generators for the consultation simulator.
Backed by numpy's Generator; every draw is serialized so the same instance can
be shared by the arrival loop and all service threads.
"""

import threading
from collections import deque
from typing import Deque, Dict, Iterable, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar('T')

ARRIVAL_MEAN_MS = 180000.0
SERVICE_MEAN_MS = 600000.0


def exponential(mean: float, u: float) -> float:
    """Inverse-transform an exponential sample from a uniform ``u`` in [0, 1)."""
    if mean <= 0:
        return 0.0
    return float(-np.log(1.0 - u) * mean)


class RandomProcess:
    """Thread-safe source of durations, preference draws and random picks."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def _uniform(self) -> float:
        with self._lock:
            return float(self._rng.random())

    def next_interval(self, mean_millis: float) -> float:
        """Exponentially distributed duration in milliseconds with the given mean."""
        return exponential(mean_millis, self._uniform())

    def draw_preference(self, probability: float) -> bool:
        """Bernoulli draw: True with the given probability."""
        return self._uniform() < probability

    def choice(self, items: Sequence[T]) -> T:
        """Uniform pick from a non-empty sequence."""
        if not items:
            raise ValueError('Cannot choose from an empty sequence')
        with self._lock:
            index = int(self._rng.integers(len(items)))
        return items[index]


class ScriptedRandomProcess(RandomProcess):
    """Replays fixed draws before falling back to seeded random ones.

    Args:
        intervals: Durations in milliseconds keyed by the mean they stand in
            for, e.g. ``{ARRIVAL_MEAN_MS: [10, 20], SERVICE_MEAN_MS: [5, 5]}``.
        preferences: Category preferences returned by ``draw_preference``.
        seed: Seed for the fallback generator and for ``choice``.

    Examples:
        rp = ScriptedRandomProcess({180000.0: [50.0]}, preferences=[True])
        rp.next_interval(180000.0)  # 50.0
    """

    def __init__(self,
                 intervals: Optional[Dict[float, Iterable[float]]] = None,
                 preferences: Iterable[bool] = (),
                 seed: Optional[int] = 0):
        super().__init__(seed)
        self._intervals: Dict[float, Deque[float]] = {
            float(mean): deque(values) for mean, values in (intervals or {}).items()
        }
        self._preferences: Deque[bool] = deque(preferences)

    def next_interval(self, mean_millis: float) -> float:
        with self._lock:
            scripted = self._intervals.get(float(mean_millis))
            if scripted:
                return float(scripted.popleft())
        return super().next_interval(mean_millis)

    def draw_preference(self, probability: float) -> bool:
        with self._lock:
            if self._preferences:
                return bool(self._preferences.popleft())
        return super().draw_preference(probability)
