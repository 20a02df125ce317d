"""Tests for QueueManager."""

import pytest

from consultation.core import Client, QueueEvent, QueueManager
from consultation.core.errors import ClientNotQueuedError, DuplicateClientError


@pytest.fixture
def queue(status_sink, log_sink) -> QueueManager:
    return QueueManager(status_sink, log_sink)


class TestQueueManager:

    def test_enqueue_notifies_both_sinks(self, queue, status_sink, log_sink) -> None:
        client = Client(1, True)
        queue.enqueue(client)

        assert status_sink.queue_events == [(QueueEvent.ADDED, 1, True)]
        assert log_sink.messages() == [f"Client 1 arrived at {client.arrived_at}"]
        assert len(queue) == 1

    def test_duplicate_enqueue_rejected(self, queue) -> None:
        client = Client(1, False)
        queue.enqueue(client)
        with pytest.raises(DuplicateClientError):
            queue.enqueue(client)
        assert len(queue) == 1

    def test_dequeue_by_identity_not_head(self, queue, status_sink) -> None:
        clients = [Client(i, False) for i in range(3)]
        for c in clients:
            queue.enqueue(c)

        waited = queue.dequeue_specific(clients[1])

        assert waited >= 0.0
        assert [c.client_id for c in queue.snapshot()] == [0, 2]
        assert status_sink.queue_events[-1] == (QueueEvent.REMOVED, 1, False)

    def test_dequeue_unknown_client(self, queue) -> None:
        with pytest.raises(ClientNotQueuedError):
            queue.dequeue_specific(Client(9, False))

    def test_dequeue_twice(self, queue) -> None:
        client = Client(4, True)
        queue.enqueue(client)
        queue.dequeue_specific(client)
        with pytest.raises(ClientNotQueuedError):
            queue.dequeue_specific(client)

    def test_contains_tracks_membership(self, queue) -> None:
        a, b = Client(0, False), Client(1, True)
        queue.enqueue(a)
        queue.enqueue(b)
        queue.dequeue_specific(b)

        assert len(queue) == 1
        assert queue.contains(a)
        assert not queue.contains(b)
