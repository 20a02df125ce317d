"""Lawyer allocation: admission tokens and the priority/preemption policy."""

from collections import deque
from dataclasses import dataclass
from enum import Enum
import threading
from typing import Callable, Deque, Dict, List, NamedTuple, Optional, Sequence

from .base import Client, LawyerSnapshot
from .errors import (LawyerUnavailableError, OperationCancelled,
                     TokenReleaseError)
from .pool import LawyerPool, REGULAR_LAWYER_COUNT
from ..observability import get_logger

log = get_logger("allocator")

HIGH_TOKEN_CAPACITY = 1
REGULAR_TOKEN_CAPACITY = REGULAR_LAWYER_COUNT


class TokenKind(Enum):
    HIGH = 'high'
    REGULAR = 'regular'


class ResourceToken:
    """Counting permit with a cancellable blocking acquire.

    Waiters block on a condition variable; cancellation is delivered by
    setting the caller's event and then calling :meth:`wake_all`.
    """

    def __init__(self, kind: TokenKind, capacity: int):
        if capacity < 1:
            raise ValueError('Token capacity must be at least 1.')
        self.kind = kind
        self.capacity = capacity
        self._available = capacity
        self._cond = threading.Condition()

        # Audit counters
        self.acquisitions = 0
        self.releases = 0
        self.peak_in_use = 0

    @property
    def in_use(self) -> int:
        with self._cond:
            return self.capacity - self._available

    @property
    def available(self) -> int:
        with self._cond:
            return self._available

    def try_acquire(self) -> bool:
        """Take a permit if one is free right now."""
        with self._cond:
            if self._available == 0:
                return False
            self._take_locked()
            return True

    def acquire(self, cancel: threading.Event) -> None:
        """Block until a permit is free or ``cancel`` is set.

        Raises OperationCancelled without granting a permit once the event
        is set, even if a permit happens to be free.
        """
        with self._cond:
            while True:
                if cancel.is_set():
                    raise OperationCancelled(f'{self.kind.value} token acquisition cancelled')
                if self._available > 0:
                    self._take_locked()
                    return
                self._cond.wait()

    def release(self) -> None:
        with self._cond:
            if self._available >= self.capacity:
                raise TokenReleaseError(
                    f'{self.kind.value} token released more often than acquired')
            self._available += 1
            self.releases += 1
            self._cond.notify_all()

    def wake_all(self) -> None:
        """Wake every blocked acquirer so it can re-check its cancel event."""
        with self._cond:
            self._cond.notify_all()

    def _take_locked(self) -> None:
        self._available -= 1
        self.acquisitions += 1
        self.peak_in_use = max(self.peak_in_use, self.capacity - self._available)


@dataclass(frozen=True)
class Assignment:
    """A granted lawyer together with the token that pays for it.

    ``token_kind`` is the token actually acquired, which differs from the
    lawyer's own category when a regular client borrows the high lawyer.
    """
    client: Client
    lawyer: LawyerSnapshot
    token_kind: TokenKind

    @property
    def preempted(self) -> bool:
        return self.lawyer.is_high_category and not self.client.prefers_high_category


class AllocationEvent(NamedTuple):
    action: str  # 'assign' | 'release'
    client_id: int
    lawyer_id: int
    token_kind: TokenKind


class Allocator:
    """Decides which lawyer serves a client.

    Policy:
      - clients preferring the high category wait for the high token and get
        the high-category lawyer;
      - other clients take the high lawyer if its token is free right now,
        otherwise wait for a regular token and get a random free regular lawyer.

    Token acquisition and the lawyer claim form one logical step: the lawyer is
    picked and marked busy atomically inside the pool, and on release the lawyer
    is freed before the permit is returned.
    """

    def __init__(self,
                 pool: LawyerPool,
                 chooser: Callable[[Sequence[LawyerSnapshot]], LawyerSnapshot],
                 max_claim_attempts: int = 3,
                 history_size: int = 10000):
        if max_claim_attempts < 1:
            raise ValueError('max_claim_attempts must be at least 1.')
        self.pool = pool
        self.chooser = chooser
        self.max_claim_attempts = max_claim_attempts
        self.high_token = ResourceToken(TokenKind.HIGH, HIGH_TOKEN_CAPACITY)
        self.regular_token = ResourceToken(TokenKind.REGULAR, REGULAR_TOKEN_CAPACITY)
        self._lock = threading.Lock()
        self._outstanding: Dict[int, Assignment] = {}
        self._history: Deque[AllocationEvent] = deque(maxlen=history_size)

    def token(self, kind: TokenKind) -> ResourceToken:
        return self.high_token if kind is TokenKind.HIGH else self.regular_token

    def allocate(self, client: Client, cancel: threading.Event) -> Assignment:
        """Obtain a lawyer for ``client``, blocking until one is granted.

        Raises:
            OperationCancelled: ``cancel`` was set before a lawyer was granted.
            LawyerUnavailableError: tokens kept being granted without a
                claimable lawyer; every such token has already been returned.
        """
        for attempt in range(1, self.max_claim_attempts + 1):
            kind = self._acquire_token(client, cancel)
            try:
                lawyer = self._claim(kind)
            except BaseException:
                self.token(kind).release()
                raise
            if lawyer is None:
                self.token(kind).release()
                log.warning("lawyer_unavailable", client_id=client.client_id,
                            token=kind.value, attempt=attempt)
                continue

            assignment = Assignment(client, lawyer, kind)
            with self._lock:
                self._outstanding[client.client_id] = assignment
                self._history.append(AllocationEvent(
                    'assign', client.client_id, lawyer.lawyer_id, kind))
            return assignment

        raise LawyerUnavailableError(
            f'No lawyer could be claimed for client {client.client_id} '
            f'after {self.max_claim_attempts} attempts')

    def release(self, assignment: Assignment) -> None:
        """Free the lawyer and return the permit to the token that was taken."""
        client_id = assignment.client.client_id
        with self._lock:
            if self._outstanding.get(client_id) is not assignment:
                raise TokenReleaseError(f'Assignment for client {client_id} is not held')
            del self._outstanding[client_id]
            self._history.append(AllocationEvent(
                'release', client_id, assignment.lawyer.lawyer_id, assignment.token_kind))
        try:
            self.pool.set_busy(assignment.lawyer.lawyer_id, False)
        finally:
            self.token(assignment.token_kind).release()

    def wake_waiters(self) -> None:
        """Deliver a cancellation to every blocked acquisition."""
        self.high_token.wake_all()
        self.regular_token.wake_all()

    def outstanding(self) -> List[Assignment]:
        with self._lock:
            return list(self._outstanding.values())

    def history(self) -> List[AllocationEvent]:
        with self._lock:
            return list(self._history)

    def _acquire_token(self, client: Client, cancel: threading.Event) -> TokenKind:
        if cancel.is_set():
            raise OperationCancelled(f'Allocation for client {client.client_id} cancelled')
        if client.prefers_high_category:
            self.high_token.acquire(cancel)
            return TokenKind.HIGH
        # An idle high-category lawyer is lent to a regular client.
        if self.high_token.try_acquire():
            return TokenKind.HIGH
        self.regular_token.acquire(cancel)
        return TokenKind.REGULAR

    def _claim(self, kind: TokenKind) -> Optional[LawyerSnapshot]:
        if kind is TokenKind.HIGH:
            return self.pool.claim_free(True, lambda free: free[0])
        return self.pool.claim_free(False, self.chooser)
