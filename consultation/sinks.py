"""Concrete status and log sinks."""

from datetime import datetime
import threading
from pathlib import Path
from typing import List, Tuple, Union

from .core.base import LogSink, StatusSink
from .core.errors import SinkFailure
from .observability import get_logger

log = get_logger("sinks")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_line(timestamp: datetime, message: str) -> str:
    return f"{timestamp.strftime(TIMESTAMP_FORMAT)}: {message}"


class FileLogSink(LogSink):
    """Append-only text log, one ``<timestamp>: <message>`` line per event."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, timestamp: datetime, message: str) -> None:
        with self._lock:
            try:
                with open(self.path, 'a', encoding='utf-8') as f:
                    f.write(format_line(timestamp, message) + '\n')
            except OSError as exc:
                raise SinkFailure(f"Error writing to log {self.path}: {exc}") from exc


class MemoryLogSink(LogSink):
    """Keeps lines in memory, in the order they were appended."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[Tuple[datetime, str]] = []

    def append(self, timestamp: datetime, message: str) -> None:
        with self._lock:
            self._entries.append((timestamp, message))

    def messages(self) -> List[str]:
        with self._lock:
            return [message for _, message in self._entries]

    def lines(self) -> List[str]:
        with self._lock:
            return [format_line(ts, message) for ts, message in self._entries]


class GuardedLogSink(LogSink):
    """Wraps a sink so a failing write is reported and never propagates.

    The simulation keeps running when its log cannot be written.
    """

    def __init__(self, inner: LogSink):
        self.inner = inner
        self.failures = 0
        self._lock = threading.Lock()

    def append(self, timestamp: datetime, message: str) -> None:
        try:
            self.inner.append(timestamp, message)
        except Exception as exc:
            with self._lock:
                self.failures += 1
            log.error("log_sink_failed", error=str(exc), message=message)


class StructlogStatusSink(StatusSink):
    """Mirrors status changes to the operator log at debug level."""

    def __init__(self):
        self._log = get_logger("status")

    def on_queue_changed(self, event, client_id, prefers_high_category):
        self._log.debug("queue_changed", queue_event=event.value, client_id=client_id,
                        prefers_high_category=prefers_high_category)

    def on_lawyer_status_changed(self, snapshot):
        self._log.debug("lawyers_changed",
                        lawyers=[lawyer.describe() for lawyer in snapshot])
