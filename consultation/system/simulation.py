"""Simulation controller: arrival loop, per-client service threads, lifecycle."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import itertools
import threading
import time
from typing import Dict, List, Optional

from ..config import SimulationConfig
from ..core import (Allocator, Assignment, Client, LawyerPool, LogSink,
                    MetricsCollector, NullStatusSink, QueueManager, StatusSink)
from ..core.errors import (LawyerUnavailableError, OperationCancelled,
                           SimulationStateError)
from ..distributions import RandomProcess
from ..observability import get_logger
from ..sinks import FileLogSink, GuardedLogSink

log = get_logger("simulation")


class SimulationState(Enum):
    STOPPED = 'stopped'
    RUNNING = 'running'
    TERMINATED = 'terminated'


@dataclass
class ServiceTask:
    """Handle on the thread serving one client."""
    client: Client
    thread: threading.Thread

    def join(self, timeout: Optional[float] = None) -> bool:
        self.thread.join(timeout)
        return not self.thread.is_alive()

    @property
    def is_alive(self) -> bool:
        return self.thread.is_alive()


class SimulationController:
    """Drives the consultation office.

    One thread generates arrivals; every client then gets its own service
    thread that obtains a lawyer from the allocator, holds it for the service
    duration and releases it. All blocking points (inter-arrival sleep, token
    acquisition, service sleep) are woken by a single cancellation event, and
    :meth:`stop` joins every thread so no token is still held once the
    controller reports STOPPED.
    """

    def __init__(self,
                 config: Optional[SimulationConfig] = None,
                 status_sink: Optional[StatusSink] = None,
                 log_sink: Optional[LogSink] = None,
                 random_process: Optional[RandomProcess] = None):
        self.config = config or SimulationConfig()
        self.random_process = random_process or RandomProcess(self.config.seed)
        self.status_sink = status_sink or NullStatusSink()
        self.log_sink = GuardedLogSink(log_sink or FileLogSink(self.config.log_path))

        self.pool = LawyerPool(self.status_sink)
        self.allocator = Allocator(self.pool, self.random_process.choice,
                                   self.config.max_claim_attempts)
        self.queue = QueueManager(self.status_sink, self.log_sink)
        self.metrics = MetricsCollector()

        self._state = SimulationState.STOPPED
        self._state_lock = threading.Lock()
        self._cancel = threading.Event()
        self._arrival_thread: Optional[threading.Thread] = None
        self._tasks: Dict[int, ServiceTask] = {}
        self._tasks_lock = threading.Lock()
        self._client_ids = itertools.count()
        self._counter_lock = threading.Lock()

        self.clients_arrived = 0
        self.clients_served = 0
        self.clients_dropped = 0
        self.clients_abandoned = 0
        self.last_average = 0.0
        self._started_at: Optional[float] = None
        self._elapsed = 0.0

        self.status_sink.on_lawyer_status_changed(self.pool.list_all())

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------
    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SimulationState.RUNNING

    def start(self) -> None:
        """Begin a new run. Metrics and utilization windows are reset."""
        with self._state_lock:
            if self._state is SimulationState.TERMINATED:
                raise SimulationStateError("Simulation has been shut down")
            if self._state is SimulationState.RUNNING:
                return
            self._cancel = threading.Event()
            self.metrics.reset()
            self.pool.reset()
            with self._counter_lock:
                self.clients_arrived = 0
                self.clients_served = 0
                self.clients_dropped = 0
                self.clients_abandoned = 0
            self._started_at = time.monotonic()
            self._state = SimulationState.RUNNING
            self._arrival_thread = threading.Thread(
                target=self._arrival_loop, args=(self._cancel,),
                name="arrival-loop", daemon=True)
            self._arrival_thread.start()
        log.info("simulation_started", time_scale=self.config.time_scale,
                 seed=self.random_process.seed)

    def stop(self) -> float:
        """Cancel the run, wait for every thread to unwind, return the average wait.

        With a ``join_timeout`` set, a service task that is still alive after
        the timeout may hold a token. The controller then stays RUNNING and
        raises SimulationStateError; calling stop() again resumes the join.
        """
        with self._state_lock:
            if self._state is not SimulationState.RUNNING:
                return self.current_average_waiting_time()
            stuck = self._cancel_and_join()
            if stuck:
                raise SimulationStateError(
                    f"{len(stuck)} service task(s) did not finish within "
                    f"{self.config.join_timeout} s; still running")
            self._state = SimulationState.STOPPED
            self.last_average = self.metrics.average()
        self._log("Simulation stopped.")
        self._log(f"Average waiting time: {self.last_average:.2f} sec")
        log.info("simulation_stopped", average_waiting_time=self.last_average,
                 clients_served=self.clients_served)
        return self.last_average

    def shutdown(self) -> None:
        """Cancel unconditionally; the controller cannot be restarted afterwards."""
        with self._state_lock:
            if self._state is SimulationState.TERMINATED:
                return
            was_running = self._state is SimulationState.RUNNING
            self._cancel_and_join()
            self._state = SimulationState.TERMINATED
            self.last_average = self.metrics.average()
        if was_running:
            self._log("Simulation stopped.")
        log.info("simulation_shutdown")

    def current_average_waiting_time(self) -> float:
        return self.metrics.average()

    def submit_client(self, prefers_high_category: bool) -> Client:
        """Admit a client immediately, outside the random arrival process."""
        with self._state_lock:
            if self._state is not SimulationState.RUNNING:
                raise SimulationStateError("Clients can only be admitted while running")
            return self._admit(prefers_high_category, self._cancel)

    def active_tasks(self) -> List[ServiceTask]:
        with self._tasks_lock:
            return list(self._tasks.values())

    def elapsed(self) -> float:
        """Wall-clock seconds of the current (or last) run."""
        if self._state is SimulationState.RUNNING and self._started_at is not None:
            return time.monotonic() - self._started_at
        return self._elapsed

    def summary(self) -> Dict:
        """Snapshot of the run's metrics, suitable for JSON output."""
        with self._counter_lock:
            arrived = self.clients_arrived
            served = self.clients_served
            dropped = self.clients_dropped
            abandoned = self.clients_abandoned
        return {
            'state': self._state.value,
            'elapsed_wall_seconds': self.elapsed(),
            'simulated_seconds': self.config.to_simulated(self.elapsed()),
            'clients': {
                'arrived': arrived,
                'served': served,
                'dropped': dropped,
                'abandoned': abandoned,
                'waiting': len(self.queue),
            },
            'average_waiting_time': self.metrics.average(),
            'waiting_time': self.metrics.summary(),
            'utilization': {str(k): v for k, v in self.pool.utilization().items()},
            'tokens': {
                token.kind.value: {
                    'capacity': token.capacity,
                    'in_use': token.in_use,
                    'peak_in_use': token.peak_in_use,
                    'acquisitions': token.acquisitions,
                    'releases': token.releases,
                }
                for token in (self.allocator.high_token, self.allocator.regular_token)
            },
        }

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------
    def _arrival_loop(self, cancel: threading.Event) -> None:
        try:
            while True:
                interval = self.random_process.next_interval(self.config.arrival_mean_ms)
                self._sleep(self.config.to_seconds(interval), cancel)
                prefers_high = self.random_process.draw_preference(
                    self.config.high_preference_probability)
                self._admit(prefers_high, cancel)
        except OperationCancelled:
            log.debug("arrival_loop_cancelled")
        except Exception as exc:
            log.exception("arrival_loop_failed")
            self._log(f"Error in client arrival: {exc}")

    def _admit(self, prefers_high_category: bool, cancel: threading.Event) -> Client:
        with self._counter_lock:
            client_id = next(self._client_ids)
            self.clients_arrived += 1
        client = Client(client_id, prefers_high_category)
        self.queue.enqueue(client)
        thread = threading.Thread(target=self._serve, args=(client, cancel),
                                  name=f"client-{client_id}", daemon=True)
        task = ServiceTask(client, thread)
        with self._tasks_lock:
            self._tasks[client_id] = task
        thread.start()
        return client

    def _serve(self, client: Client, cancel: threading.Event) -> None:
        assignment: Optional[Assignment] = None
        try:
            try:
                assignment = self.allocator.allocate(client, cancel)
            except OperationCancelled:
                self._withdraw(client, "left the queue unserved")
                with self._counter_lock:
                    self.clients_abandoned += 1
                return
            except LawyerUnavailableError as exc:
                log.warning("client_dropped", client_id=client.client_id, reason=str(exc))
                self._withdraw(client, f"dropped: {exc}")
                with self._counter_lock:
                    self.clients_dropped += 1
                return

            lawyer_id = assignment.lawyer.lawyer_id
            waited = self.config.to_simulated(self.queue.dequeue_specific(client))
            self.metrics.record(waited)
            self._log(f"Client {client.client_id} assigned to Lawyer {lawyer_id} "
                      f"at {datetime.now()}, waiting time: {waited:.2f} sec")

            service = self.random_process.next_interval(self.config.service_mean_ms)
            self._sleep(self.config.to_seconds(service), cancel)

            current, assignment = assignment, None
            self.allocator.release(current)
            with self._counter_lock:
                self.clients_served += 1
            self._log(f"Client {client.client_id} finished with Lawyer {lawyer_id} "
                      f"at {datetime.now()}")
        except OperationCancelled:
            log.debug("service_cancelled", client_id=client.client_id)
        except Exception as exc:
            log.exception("service_failed", client_id=client.client_id)
            self._log(f"Error processing client {client.client_id}: {exc}")
            try:
                self._withdraw(client, "removed after an error")
            except Exception:
                log.exception("withdraw_failed", client_id=client.client_id)
        finally:
            if assignment is not None:
                try:
                    self.allocator.release(assignment)
                except Exception:
                    log.exception("release_failed", client_id=client.client_id)
            with self._tasks_lock:
                self._tasks.pop(client.client_id, None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _cancel_and_join(self) -> List[ServiceTask]:
        """Raise cancellation and wait for the arrival loop and all service threads.

        Returns the service tasks still alive after ``join_timeout``.
        """
        self._cancel.set()
        self.allocator.wake_waiters()
        timeout = self.config.join_timeout

        if self._arrival_thread is not None:
            self._arrival_thread.join(timeout)
            self._arrival_thread = None
        # The arrival loop has exited, so the registry can only shrink now.
        stuck = []
        for task in self.active_tasks():
            if not task.join(timeout):
                log.warning("service_task_still_running", client_id=task.client.client_id)
                stuck.append(task)

        leaked = self.allocator.outstanding()
        if leaked:
            log.error("tokens_still_held", clients=[a.client.client_id for a in leaked])
        if self._started_at is not None:
            self._elapsed = time.monotonic() - self._started_at
        return stuck

    def _withdraw(self, client: Client, reason: str) -> None:
        if self.queue.contains(client):
            self.queue.dequeue_specific(client)
            self._log(f"Client {client.client_id} {reason}")

    def _sleep(self, seconds: float, cancel: threading.Event) -> None:
        if cancel.wait(seconds):
            raise OperationCancelled("Sleep interrupted")

    def _log(self, message: str) -> None:
        self.log_sink.append(datetime.now(), message)
