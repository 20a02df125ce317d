"""Waiting line component implementation."""

from collections import OrderedDict
from datetime import datetime
import threading
import time
from typing import List, Optional

from .base import Client, LogSink, NullLogSink, NullStatusSink, QueueEvent, StatusSink
from .errors import ClientNotQueuedError, DuplicateClientError


class QueueManager:
    """FIFO line of clients that have arrived but have not been assigned a lawyer.

    Removal is by identity: a client leaves the line when *its* service task
    gets a lawyer, which is not necessarily the client at the head.
    """

    def __init__(self,
                 status_sink: Optional[StatusSink] = None,
                 log_sink: Optional[LogSink] = None):
        self.status_sink = status_sink or NullStatusSink()
        self.log_sink = log_sink or NullLogSink()
        self._lock = threading.Lock()
        self._line: 'OrderedDict[int, Client]' = OrderedDict()

    def enqueue(self, client: Client) -> None:
        """Append a client to the tail of the line."""
        with self._lock:
            if client.client_id in self._line:
                raise DuplicateClientError(
                    f"Client {client.client_id} is already waiting")
            self._line[client.client_id] = client
            self.status_sink.on_queue_changed(
                QueueEvent.ADDED, client.client_id, client.prefers_high_category)
        self.log_sink.append(
            datetime.now(), f"Client {client.client_id} arrived at {client.arrived_at}")

    def dequeue_specific(self, client: Client) -> float:
        """Remove the given client and return how long it waited, in seconds."""
        with self._lock:
            if self._line.pop(client.client_id, None) is None:
                raise ClientNotQueuedError(
                    f"Client {client.client_id} is not in the waiting line")
            self.status_sink.on_queue_changed(
                QueueEvent.REMOVED, client.client_id, client.prefers_high_category)
        return time.monotonic() - client.enqueue_time

    def contains(self, client: Client) -> bool:
        with self._lock:
            return client.client_id in self._line

    def snapshot(self) -> List[Client]:
        """Waiting clients in arrival order."""
        with self._lock:
            return list(self._line.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._line)
