"""
Pytest configuration and shared fixtures for the consultation simulator tests.

Testing Standards:
- Unit tests drive components directly from the test thread
- Threaded tests wait on observable state with ``wait_until``, never on fixed sleeps alone
"""

import threading
import time
from typing import Callable, List, Tuple

import matplotlib
import pytest

matplotlib.use("Agg")

from consultation.config import SimulationConfig  # noqa: E402
from consultation.core import LawyerPool, QueueEvent, StatusSink  # noqa: E402
from consultation.observability import configure_logging  # noqa: E402
from consultation.sinks import MemoryLogSink  # noqa: E402


class RecordingStatusSink(StatusSink):
    """Keeps every status event for later assertions."""

    def __init__(self):
        self._lock = threading.Lock()
        self.queue_events: List[Tuple[QueueEvent, int, bool]] = []
        self.lawyer_snapshots: List[list] = []

    def on_queue_changed(self, event, client_id, prefers_high_category):
        with self._lock:
            self.queue_events.append((event, client_id, prefers_high_category))

    def on_lawyer_status_changed(self, snapshot):
        with self._lock:
            self.lawyer_snapshots.append(list(snapshot))

    def events_for(self, client_id: int) -> List[QueueEvent]:
        with self._lock:
            return [event for event, cid, _ in self.queue_events if cid == client_id]


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    configure_logging("development", "WARNING")


@pytest.fixture
def status_sink() -> RecordingStatusSink:
    return RecordingStatusSink()


@pytest.fixture
def log_sink() -> MemoryLogSink:
    return MemoryLogSink()


@pytest.fixture
def pool(status_sink: RecordingStatusSink) -> LawyerPool:
    return LawyerPool(status_sink)


@pytest.fixture
def fast_config(tmp_path) -> SimulationConfig:
    """Arrivals every ~20 ms and services of ~50 ms of wall-clock time."""
    return SimulationConfig(arrival_mean_ms=20.0, service_mean_ms=50.0,
                            seed=7, log_path=str(tmp_path / "log.txt"),
                            join_timeout=10.0)


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    def _wait(predicate: Callable[[], bool], timeout: float = 5.0,
              interval: float = 0.005) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()
    return _wait
