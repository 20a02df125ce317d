"""Base classes for the consultation simulator."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, NamedTuple
from abc import ABC, abstractmethod
import time


@dataclass(frozen=True)
class Client:
    """A client waiting for (or receiving) a consultation."""
    client_id: int
    prefers_high_category: bool
    enqueue_time: float = field(default_factory=time.monotonic)
    arrived_at: datetime = field(default_factory=datetime.now)


@dataclass
class Lawyer:
    """A lawyer record. ``is_busy`` is only mutated by the LawyerPool."""
    lawyer_id: int
    is_high_category: bool
    is_busy: bool = False

    def snapshot(self) -> 'LawyerSnapshot':
        return LawyerSnapshot(self.lawyer_id, self.is_high_category, self.is_busy)


class LawyerSnapshot(NamedTuple):
    """Immutable view of a lawyer handed to status sinks."""
    lawyer_id: int
    is_high_category: bool
    is_busy: bool

    def describe(self) -> str:
        category = " (high category)" if self.is_high_category else ""
        status = "busy" if self.is_busy else "free"
        return f"Lawyer {self.lawyer_id}{category}: {status}"


class QueueEvent(Enum):
    ADDED = 'added'
    REMOVED = 'removed'


class StatusSink(ABC):
    """Receives queue-membership and lawyer-status changes."""

    @abstractmethod
    def on_queue_changed(self, event: QueueEvent, client_id: int,
                         prefers_high_category: bool) -> None:
        pass

    @abstractmethod
    def on_lawyer_status_changed(self, snapshot: List[LawyerSnapshot]) -> None:
        pass


class LogSink(ABC):
    """Receives timestamped, human-readable event lines."""

    @abstractmethod
    def append(self, timestamp: datetime, message: str) -> None:
        pass


class NullStatusSink(StatusSink):
    """Status sink that ignores every event."""

    def on_queue_changed(self, event, client_id, prefers_high_category):
        pass

    def on_lawyer_status_changed(self, snapshot):
        pass


class NullLogSink(LogSink):
    """Log sink that drops every line."""

    def append(self, timestamp, message):
        pass
