"""Tests for the random process."""

import math
import threading

import numpy as np
import pytest
from scipy import stats

from consultation.distributions import (ARRIVAL_MEAN_MS, SERVICE_MEAN_MS,
                                        RandomProcess, ScriptedRandomProcess,
                                        exponential)


class TestExponential:

    def test_inverse_transform(self) -> None:
        assert exponential(1000.0, 0.5) == pytest.approx(-math.log(0.5) * 1000.0)

    def test_zero_uniform_gives_zero(self) -> None:
        assert exponential(180000.0, 0.0) == 0.0

    def test_non_positive_mean(self) -> None:
        assert exponential(0.0, 0.7) == 0.0
        assert exponential(-5.0, 0.7) == 0.0


class TestRandomProcess:

    def test_same_seed_same_draws(self) -> None:
        a = RandomProcess(seed=42)
        b = RandomProcess(seed=42)
        assert [a.next_interval(ARRIVAL_MEAN_MS) for _ in range(20)] == \
            [b.next_interval(ARRIVAL_MEAN_MS) for _ in range(20)]

    def test_intervals_are_exponential(self) -> None:
        rp = RandomProcess(seed=1)
        samples = np.array([rp.next_interval(SERVICE_MEAN_MS) for _ in range(3000)])
        assert (samples >= 0).all()
        result = stats.kstest(samples, 'expon', args=(0, SERVICE_MEAN_MS))
        assert result.pvalue > 0.001

    def test_preference_extremes(self) -> None:
        rp = RandomProcess(seed=3)
        assert not any(rp.draw_preference(0.0) for _ in range(100))
        assert all(rp.draw_preference(1.0) for _ in range(100))

    def test_preference_rate(self) -> None:
        rp = RandomProcess(seed=3)
        hits = sum(rp.draw_preference(0.2) for _ in range(5000))
        assert 850 < hits < 1150

    def test_choice(self) -> None:
        rp = RandomProcess(seed=5)
        items = ['a', 'b', 'c']
        picks = {rp.choice(items) for _ in range(200)}
        assert picks == set(items)

    def test_choice_empty(self) -> None:
        with pytest.raises(ValueError):
            RandomProcess().choice([])

    def test_concurrent_draws(self) -> None:
        rp = RandomProcess(seed=9)
        results = []
        lock = threading.Lock()

        def worker():
            local = [rp.next_interval(1000.0) for _ in range(500)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4000
        assert all(r >= 0 and math.isfinite(r) for r in results)


class TestScriptedRandomProcess:

    def test_replays_then_falls_back(self) -> None:
        rp = ScriptedRandomProcess({ARRIVAL_MEAN_MS: [10.0, 20.0]}, seed=0)
        assert rp.next_interval(ARRIVAL_MEAN_MS) == 10.0
        assert rp.next_interval(ARRIVAL_MEAN_MS) == 20.0
        assert rp.next_interval(ARRIVAL_MEAN_MS) >= 0.0

    def test_sequences_are_keyed_by_mean(self) -> None:
        rp = ScriptedRandomProcess({ARRIVAL_MEAN_MS: [1.0], SERVICE_MEAN_MS: [2.0]})
        assert rp.next_interval(SERVICE_MEAN_MS) == 2.0
        assert rp.next_interval(ARRIVAL_MEAN_MS) == 1.0

    def test_scripted_preferences(self) -> None:
        rp = ScriptedRandomProcess(preferences=[True, False])
        assert rp.draw_preference(0.0) is True
        assert rp.draw_preference(1.0) is False
        assert rp.draw_preference(1.0) is True
