"""Lawyer pool component implementation."""

import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from .base import Lawyer, LawyerSnapshot, NullStatusSink, StatusSink
from .errors import LawyerStateError

HIGH_CATEGORY_LAWYER_ID = 0
REGULAR_LAWYER_COUNT = 5


class LawyerPool:
    """Owns the lawyers and their busy/free state.

    Every read and write of ``is_busy`` happens under one lock, and every
    mutation is followed by a status notification carrying the whole pool.
    Busy time is accumulated per lawyer for utilization reporting.
    """

    def __init__(self, status_sink: Optional[StatusSink] = None):
        self.status_sink = status_sink or NullStatusSink()
        self._lock = threading.Lock()
        self._lawyers: Dict[int, Lawyer] = {
            HIGH_CATEGORY_LAWYER_ID: Lawyer(HIGH_CATEGORY_LAWYER_ID, True)
        }
        for lawyer_id in range(1, REGULAR_LAWYER_COUNT + 1):
            self._lawyers[lawyer_id] = Lawyer(lawyer_id, False)

        # Utilization tracking
        self._busy_since: Dict[int, float] = {}
        self._busy_seconds: Dict[int, float] = {i: 0.0 for i in self._lawyers}
        self._window_start = time.monotonic()

    @property
    def high_category_lawyer_id(self) -> int:
        return HIGH_CATEGORY_LAWYER_ID

    def list_all(self) -> List[LawyerSnapshot]:
        """Snapshot of every lawyer, ordered by id."""
        with self._lock:
            return self._snapshot_locked()

    def list_free(self, high_category: bool) -> List[LawyerSnapshot]:
        """Snapshot of the free lawyers in the given category."""
        with self._lock:
            return [lawyer.snapshot() for lawyer in self._lawyers.values()
                    if lawyer.is_high_category == high_category
                    and not lawyer.is_busy]

    def set_busy(self, lawyer_id: int, busy: bool) -> None:
        """Flip one lawyer's busy flag and publish the new pool state."""
        with self._lock:
            lawyer = self._lawyers[lawyer_id]
            if lawyer.is_busy == busy:
                state = "busy" if busy else "free"
                raise LawyerStateError(f"Lawyer {lawyer_id} is already {state}")
            self._mark_locked(lawyer, busy)
            # Published under the lock so sinks see snapshots in mutation order
            self.status_sink.on_lawyer_status_changed(self._snapshot_locked())

    def claim_free(self, high_category: bool,
                   chooser: Callable[[Sequence[LawyerSnapshot]], LawyerSnapshot]
                   ) -> Optional[LawyerSnapshot]:
        """Pick a free lawyer of the category and mark it busy in one step.

        Returns None when nobody in the category is free.
        """
        with self._lock:
            free = [lawyer.snapshot() for lawyer in self._lawyers.values()
                    if lawyer.is_high_category == high_category
                    and not lawyer.is_busy]
            if not free:
                return None
            chosen = chooser(free)
            lawyer = self._lawyers[chosen.lawyer_id]
            self._mark_locked(lawyer, True)
            self.status_sink.on_lawyer_status_changed(self._snapshot_locked())
            return lawyer.snapshot()

    def busy_count(self, high_category: Optional[bool] = None) -> int:
        with self._lock:
            return sum(1 for lawyer in self._lawyers.values()
                       if lawyer.is_busy and (high_category is None
                                              or lawyer.is_high_category == high_category))

    def utilization(self) -> Dict[int, float]:
        """Fraction of the measurement window each lawyer spent busy."""
        now = time.monotonic()
        with self._lock:
            elapsed = now - self._window_start
            result = {}
            for lawyer_id, busy in self._busy_seconds.items():
                if lawyer_id in self._busy_since:
                    busy += now - self._busy_since[lawyer_id]
                result[lawyer_id] = min(busy / elapsed, 1.0) if elapsed > 0 else 0.0
            return result

    def reset(self) -> None:
        """Start a new utilization window. Busy flags are left untouched."""
        now = time.monotonic()
        with self._lock:
            self._window_start = now
            self._busy_seconds = {i: 0.0 for i in self._lawyers}
            for lawyer_id in self._busy_since:
                self._busy_since[lawyer_id] = now

    def _mark_locked(self, lawyer: Lawyer, busy: bool) -> None:
        now = time.monotonic()
        lawyer.is_busy = busy
        if busy:
            self._busy_since[lawyer.lawyer_id] = now
        else:
            started = self._busy_since.pop(lawyer.lawyer_id, now)
            self._busy_seconds[lawyer.lawyer_id] += now - started

    def _snapshot_locked(self) -> List[LawyerSnapshot]:
        return [self._lawyers[i].snapshot() for i in sorted(self._lawyers)]
