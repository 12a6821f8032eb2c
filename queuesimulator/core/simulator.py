"""The simulation engine: queues, timers and the event handlers that drive them.

A Simulator owns every piece of mutable state of a run (queues, pending close
requests, statistics, lifecycle state) and one re-entrant lock. Three timers
feed it events:

- arrivals: one one-shot task per customer, all scheduled at start
- service: one one-shot task per queue head, rescheduled as heads change
- reorganization: an optional fixed-rate task that rebalances queues

Each event handler takes the lock, checks the run is still RUNNING, mutates
state and queues notifications in an outbox. Once the lock is released the
outbox is drained to subscribers, so subscribers never run under the lock and
may call any query or command.

A failure inside a handler is never retried. It is stored as ``error``,
reported with ``S|E`` and ends the run in the ERRORED state.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from collections.abc import Callable
from functools import partial

from queuesimulator.core.config import SimulatorBuilder, SimulatorConfig
from queuesimulator.core.messages import (
    AllQueuesFull,
    CustomerArrived,
    CustomerServed,
    Notification,
    QueueClosed,
    QueueOpened,
    QueuesReorganized,
    SimulationErrored,
    SimulationFinished,
    SimulationStarted,
    SimulationStopped,
    Subscriber,
)
from queuesimulator.core.state import QueueSnapshot, SimulationState, SimulatorSnapshot
from queuesimulator.core.timers import BaseTimer, TimeSource, WallClock
from queuesimulator.entities.customer import Customer, reset_ids
from queuesimulator.entities.queue import ServiceQueue
from queuesimulator.errors import (
    CapacityExhaustedError,
    InvariantViolationError,
    OutOfRangeError,
    SimulationStateError,
)
from queuesimulator.instrumentation.statistics import Statistics
from queuesimulator.instrumentation.summary import SimulationSummary

logger = logging.getLogger(__name__)

FULL_QUEUE_THRESHOLD = 10
"""Size at which a queue counts as full for the overflow check.

Fixed, independent of the configured queue capacity: a run whose capacity is
below this bound never reports ``Q|F`` and instead fails when the chosen queue
rejects a customer.
"""

REORGANIZATION_GAP = 2
"""Largest size difference between open queues that reorganization tolerates."""


class Simulator:
    """Multi-queue service facility driven by timers.

    Create one through ``Simulator.builder()`` or directly from a
    SimulatorConfig, subscribe to notifications, then call ``simulate()``.
    A simulator runs once.

    Args:
        config: Run parameters. Defaults to SimulatorConfig().
        clock: Time source for timestamps and timers. Defaults to WallClock.
    """

    def __init__(self, config: SimulatorConfig | None = None, *, clock: TimeSource | None = None):
        self._config = config or SimulatorConfig()
        self._clock = clock or WallClock()
        self._rng = random.Random(self._config.seed)

        self._queues = [ServiceQueue(self._config.queue_capacity) for _ in range(self._config.queues)]
        self._pending_close: set[int] = set()
        self._statistics = Statistics(self._config.queues, clock=self._clock.now)

        self._lock = threading.RLock()
        self._state = SimulationState.NOT_STARTED
        self._error: BaseException | None = None
        self._start_time: float | None = None
        self._end_time: float | None = None
        self._done = threading.Event()

        self._arrival_timer: BaseTimer | None = None
        self._service_timer: BaseTimer | None = None
        self._reorganization_timer: BaseTimer | None = None

        self._subscribers: list[Subscriber] = []
        self._subscribers_lock = threading.Lock()
        self._outbox: deque[Notification] = deque()
        self._outbox_lock = threading.Lock()
        self._delivering = False

    @staticmethod
    def builder() -> SimulatorBuilder:
        """Start building a simulator one parameter at a time."""
        return SimulatorBuilder()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a notification callback.

        Returns:
            A function that removes the subscription.
        """
        with self._subscribers_lock:
            self._subscribers.append(subscriber)
        return partial(self.unsubscribe, subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a notification callback. Unknown callbacks are ignored."""
        with self._subscribers_lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def config(self) -> SimulatorConfig:
        return self._config

    @property
    def statistics(self) -> Statistics:
        return self._statistics

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        """The exception that ended the run, if it ended in ERRORED."""
        return self._error

    @property
    def queue_count(self) -> int:
        return len(self._queues)

    def is_queue_open(self, index: int) -> bool:
        self._check_index(index)
        with self._lock:
            return self._queues[index].is_open

    def queue_size(self, index: int) -> int:
        self._check_index(index)
        with self._lock:
            return self._queues[index].size

    def queue_capacity(self, index: int) -> int:
        self._check_index(index)
        return self._queues[index].capacity

    def pending_close(self, index: int) -> bool:
        """True if queue ``index`` will close as soon as it drains."""
        self._check_index(index)
        with self._lock:
            return index in self._pending_close

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds since ``simulate()``; frozen once the run has ended."""
        with self._lock:
            if self._start_time is None:
                return 0
            end = self._end_time if self._end_time is not None else self._clock.now()
            return int(end - self._start_time)

    def snapshot(self) -> SimulatorSnapshot:
        """Consistent view of every queue, taken under the engine lock."""
        with self._lock:
            queues = tuple(
                QueueSnapshot(
                    index=i,
                    is_open=q.is_open,
                    size=q.size,
                    capacity=q.capacity,
                    pending_close=i in self._pending_close,
                )
                for i, q in enumerate(self._queues)
            )
            return SimulatorSnapshot(
                state=self._state,
                elapsed_s=self.elapsed_seconds,
                customers_processed=self._statistics.processed_count,
                queues=queues,
            )

    def summary(self, precision: int = 2) -> SimulationSummary:
        """Aggregate statistics of the run so far.

        Idle time of queues that are idle right now is only included once the
        run has ended.
        """
        stats = self._statistics
        with self._lock:
            state = self._state
            elapsed = self.elapsed_seconds
        return SimulationSummary(
            state=state.value,
            elapsed_s=elapsed,
            customers_processed=stats.processed_count,
            average_service_time=stats.average_service_time(precision),
            average_waiting_time=stats.average_waiting_time(precision),
            queue_idle_times=[stats.queue_idle_total(i, precision) for i in range(self.queue_count)],
        )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the run has ended and its final notification was delivered.

        Returns:
            True if the run ended, False if ``timeout`` expired first.
        """
        return self._done.wait(timeout)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def simulate(self) -> None:
        """Open every queue, schedule all arrivals and start the run.

        Raises:
            SimulationStateError: If the simulator has already been started.
        """
        with self._lock:
            if self._state is not SimulationState.NOT_STARTED:
                raise SimulationStateError(f"simulation already {self._state.value}")

            cfg = self._config
            reset_ids()

            for i, queue in enumerate(self._queues):
                queue.open()
                self._statistics.set_queue_idle(i, True)

            self._arrival_timer = self._clock.timer("arrivals")
            self._service_timer = self._clock.timer("service")
            self._reorganization_timer = self._clock.timer("reorganization")

            now = self._clock.now()
            arrival_at = now
            for n in range(cfg.customers):
                arrival_at += self._rng.uniform(cfg.min_arrival, cfg.max_arrival)
                self._arrival_timer.schedule_at(self._on_arrival, arrival_at, name=f"arrival-{n + 1}")

            if cfg.reorganization_enabled:
                self._reorganization_timer.schedule_at_fixed_rate(
                    self._on_reorganization,
                    cfg.reorganization,
                    cfg.reorganization,
                    name="reorganization",
                )

            self._start_time = now
            self._state = SimulationState.RUNNING
            logger.info(
                "Simulation started: %d queue(s), %d customer(s), last arrival in %.1fs",
                cfg.queues, cfg.customers, arrival_at - now,
            )
            self._emit(SimulationStarted())
        self._flush()

    def stop(self) -> None:
        """End a running simulation. No-op unless RUNNING."""
        with self._lock:
            if not self._accepts_commands("stop"):
                return
            logger.info("Simulation stopped after %ds", self.elapsed_seconds)
            self._terminate(SimulationState.STOPPED, SimulationStopped())
        self._flush()

    def open_queue(self, index: int) -> None:
        """Open queue ``index`` and cancel any pending close request for it.

        Opening an open queue only cancels the close request.

        Raises:
            OutOfRangeError: If ``index`` does not name a queue.
        """
        self._check_index(index)
        with self._lock:
            if not self._accepts_commands("open_queue"):
                return
            self._pending_close.discard(index)
            queue = self._queues[index]
            if not queue.is_open:
                queue.open()
                self._statistics.set_queue_idle(index, True)
                logger.debug("Queue %d opened", index)
                self._emit(QueueOpened(index))
        self._flush()

    def request_close(self, index: int) -> None:
        """Close queue ``index`` now if empty, otherwise as soon as it drains.

        Arrivals keep being routed to a queue waiting to close, so it may
        receive more customers before it finally closes.

        Raises:
            OutOfRangeError: If ``index`` does not name a queue.
        """
        self._check_index(index)
        with self._lock:
            if not self._accepts_commands("request_close"):
                return
            if index in self._pending_close:
                return
            queue = self._queues[index]
            if queue.size == 0:
                if queue.is_open:
                    self._close_queue(index)
            else:
                self._pending_close.add(index)
                logger.debug("Queue %d will close once its %d customer(s) are served", index, queue.size)
        self._flush()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_arrival(self) -> None:
        self._run_event("arrival", self._handle_arrival)

    def _on_service(self, index: int) -> None:
        self._run_event("service", self._handle_service, index)

    def _on_reorganization(self) -> None:
        self._run_event("reorganization", self._handle_reorganization)

    def _run_event(self, kind: str, handler: Callable[..., None], *args) -> None:
        with self._lock:
            if self._state is not SimulationState.RUNNING:
                logger.debug("Ignoring %s event in state %s", kind, self._state.value)
                return
            try:
                handler(*args)
            except Exception as exc:
                self._fail(kind, exc)
        self._flush()

    def _handle_arrival(self) -> None:
        if self._all_queues_at_bound():
            raise CapacityExhaustedError("a new customer arrived, no empty slot was found")

        cfg = self._config
        customer = Customer.arrive(cfg.min_service, cfg.max_service, self._rng)

        index = self._shortest_open_queue()
        if index is None:
            raise InvariantViolationError("no open queue")

        queue = self._queues[index]
        if queue.size == 0:
            self._statistics.set_queue_idle(index, False)
        queue.push_back(customer)
        logger.debug("Customer %d (needs %ds) joined queue %d", customer.id, customer.service_needed, index)
        self._emit(CustomerArrived(customer.id, index))

        self._statistics.record_arrival(customer)

        if queue.size == 1:
            self._schedule_service(index, customer)

        if self._all_queues_at_bound():
            logger.warning("All queues are full")
            self._emit(AllQueuesFull())

    def _handle_service(self, index: int) -> None:
        queue = self._queues[index]
        if queue.size == 0:
            raise InvariantViolationError(f"no customer at queue {index}")

        customer = queue.pop_front()
        self._statistics.record_departure(customer)
        logger.debug("Customer %d served at queue %d", customer.id, index)
        self._emit(CustomerServed(customer.id, index))

        if queue.size > 0:
            self._schedule_service(index, queue.peek_front())
        elif index in self._pending_close:
            self._close_queue(index)
        else:
            self._statistics.set_queue_idle(index, True)

        if self._statistics.processed_count == self._config.customers:
            self._terminate(SimulationState.FINISHED, SimulationFinished())
            logger.info("Simulation finished\n%s", self.summary())

    def _handle_reorganization(self) -> None:
        open_queues = [i for i, q in enumerate(self._queues) if q.is_open]
        if len(open_queues) < 2:
            return

        moved = 0
        largest, smallest = self._extremes(open_queues)
        while self._queues[largest].size - self._queues[smallest].size > REORGANIZATION_GAP:
            customer = self._queues[largest].pop_back()
            target = self._queues[smallest]
            target.push_back(customer)
            if target.size == 1:
                # Service restarts from scratch for the moved customer
                self._statistics.set_queue_idle(smallest, False)
                self._schedule_service(smallest, customer)
            moved += 1
            largest, smallest = self._extremes(open_queues)

        if moved:
            logger.debug("Reorganization moved %d customer(s)", moved)
            self._emit(QueuesReorganized())

    # ------------------------------------------------------------------
    # Helpers (engine lock held)
    # ------------------------------------------------------------------

    def _all_queues_at_bound(self) -> bool:
        return all(q.size >= FULL_QUEUE_THRESHOLD for q in self._queues)

    def _shortest_open_queue(self) -> int | None:
        """Index of the smallest open queue, lowest index on ties."""
        best: int | None = None
        for i, queue in enumerate(self._queues):
            if queue.is_open and (best is None or queue.size < self._queues[best].size):
                best = i
        return best

    def _extremes(self, indices: list[int]) -> tuple[int, int]:
        """(largest, smallest) among ``indices``, first index on ties."""
        largest = max(indices, key=lambda i: self._queues[i].size)
        smallest = min(indices, key=lambda i: self._queues[i].size)
        return largest, smallest

    def _schedule_service(self, index: int, customer: Customer) -> None:
        self._service_timer.schedule(
            partial(self._on_service, index),
            customer.service_needed,
            name=f"service-q{index}-c{customer.id}",
        )

    def _close_queue(self, index: int) -> None:
        self._queues[index].close()
        self._pending_close.discard(index)
        self._statistics.set_queue_idle(index, False)
        logger.debug("Queue %d closed", index)
        self._emit(QueueClosed(index))

    def _accepts_commands(self, command: str) -> bool:
        if self._state is SimulationState.RUNNING:
            return True
        logger.info("Ignoring %s: simulation is %s", command, self._state.value)
        return False

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._queues):
            raise OutOfRangeError(f"queue {index} does not exist (0..{len(self._queues) - 1})")

    def _fail(self, kind: str, exc: Exception) -> None:
        self._error = exc
        logger.error("Fatal error while handling %s event: %s", kind, exc, exc_info=exc)
        self._terminate(SimulationState.ERRORED, SimulationErrored())

    def _terminate(self, state: SimulationState, notification: Notification) -> None:
        """Enter a terminal state: cancel timers, commit idle time, notify."""
        self._state = state
        self._end_time = self._clock.now()
        for timer in (self._arrival_timer, self._service_timer, self._reorganization_timer):
            if timer is not None:
                timer.cancel()
        self._statistics.finalize_idle()
        self._emit(notification)

    # ------------------------------------------------------------------
    # Notification delivery
    # ------------------------------------------------------------------

    def _emit(self, notification: Notification) -> None:
        with self._outbox_lock:
            self._outbox.append(notification)

    def _flush(self) -> None:
        """Deliver queued notifications in emission order.

        Only one thread delivers at a time. A thread that finds delivery in
        progress leaves its notifications for the delivering thread, which
        keeps draining until the outbox is empty.
        """
        while True:
            with self._outbox_lock:
                if self._delivering or not self._outbox:
                    return
                self._delivering = True
                batch = list(self._outbox)
                self._outbox.clear()
            try:
                for notification in batch:
                    self._deliver(notification)
            finally:
                with self._outbox_lock:
                    self._delivering = False

    def _deliver(self, notification: Notification) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(notification)
            except Exception:
                logger.exception("Subscriber %r failed on %s", subscriber, notification)
        if notification.is_terminal:
            self._done.set()
