"""Waiting-time metrics collected across service tasks."""

import threading
from typing import Dict, List

import numpy as np
from scipy import stats


class MetricsCollector:
    """Thread-safe, append-only store of waiting-time samples (seconds)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._samples: List[float] = []

    def record(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Waiting time cannot be negative: {seconds}")
        with self._lock:
            self._samples.append(float(seconds))

    def average(self) -> float:
        """Mean waiting time, 0.0 when nothing was recorded."""
        with self._lock:
            if not self._samples:
                return 0.0
            return sum(self._samples) / len(self._samples)

    def samples(self) -> List[float]:
        with self._lock:
            return list(self._samples)

    def count(self) -> int:
        with self._lock:
            return len(self._samples)

    def reset(self) -> None:
        """Clear samples between runs."""
        with self._lock:
            self._samples.clear()

    def summary(self, confidence: float = 0.95) -> Dict[str, float]:
        """Descriptive statistics with a t-based confidence interval of the mean."""
        data = np.array(self.samples())
        if data.size == 0:
            return {'count': 0, 'mean': 0.0, 'std': 0.0, 'min': 0.0,
                    'max': 0.0, 'ci_low': 0.0, 'ci_high': 0.0}

        mean = float(np.mean(data))
        if data.size > 1 and np.std(data) > 0:
            ci_low, ci_high = stats.t.interval(
                confidence, data.size - 1, loc=mean, scale=stats.sem(data))
        else:
            ci_low = ci_high = mean

        return {
            'count': int(data.size),
            'mean': mean,
            'std': float(np.std(data, ddof=1)) if data.size > 1 else 0.0,
            'min': float(np.min(data)),
            'max': float(np.max(data)),
            'ci_low': float(ci_low),
            'ci_high': float(ci_high),
        }
