"""Thread-safe run statistics: waiting times, service times and queue idle time.

Statistics keeps its own locks, independent of the engine lock, so display
code can poll averages while events are being handled. Customer records and
queue idle records are guarded by separate locks since they never need to be
updated together.

Waiting time is derived at departure. A customer is in flight from arrival
until it leaves, and that span covers both waiting and being served, so

    waiting_time = (departure - arrival) - service_needed
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import pandas as pd

from queuesimulator.entities.customer import Customer
from queuesimulator.errors import (
    DuplicateArrivalError,
    InvalidArgumentError,
    OutOfRangeError,
    UnknownDepartureError,
)

logger = logging.getLogger(__name__)

MAX_PRECISION = 3


@dataclass(frozen=True)
class CompletedRecord:
    """One fully processed customer."""
    customer_id: int
    waiting_time: float
    service_time: int


class _IdleRecord:
    """Accumulated open-and-empty time for one queue."""

    __slots__ = ("idle", "idle_since", "total")

    def __init__(self) -> None:
        self.idle = False
        self.idle_since = 0.0
        self.total = 0.0


def _check_precision(precision: int) -> None:
    if not 0 <= precision <= MAX_PRECISION:
        raise InvalidArgumentError(
            f"precision must be in [0, {MAX_PRECISION}], got {precision}"
        )


class Statistics:
    """Records customers passing through and how long queues sat idle.

    Every method is safe to call from any thread without external locking.

    Args:
        queue_count: Number of queues whose idle time is tracked.
        clock: Seconds source used to timestamp records. Defaults to
            ``time.monotonic``; the engine passes its own time source.
    """

    def __init__(self, queue_count: int, clock: Callable[[], float] = time.monotonic):
        if queue_count < 1:
            raise ValueError(f"queue_count must be >= 1, got {queue_count}")
        self._clock = clock
        self._in_flight: dict[Customer, float] = {}
        self._completed: list[CompletedRecord] = []
        self._idle = [_IdleRecord() for _ in range(queue_count)]
        self._customer_lock = threading.Lock()
        self._queue_lock = threading.Lock()

    @property
    def queue_count(self) -> int:
        return len(self._idle)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def record_arrival(self, customer: Customer) -> None:
        """Start the in-flight window for ``customer``.

        Raises:
            DuplicateArrivalError: If the customer is already in flight.
        """
        with self._customer_lock:
            if customer in self._in_flight:
                raise DuplicateArrivalError(
                    f"customer {customer.id} already recorded as arrived"
                )
            self._in_flight[customer] = self._clock()

    def record_departure(self, customer: Customer) -> CompletedRecord:
        """Close the in-flight window for ``customer`` and store its waiting time.

        Raises:
            UnknownDepartureError: If the customer's arrival was never recorded.
        """
        with self._customer_lock:
            arrived_at = self._in_flight.pop(customer, None)
            if arrived_at is None:
                raise UnknownDepartureError(
                    f"arrival of customer {customer.id} was not recorded"
                )
            elapsed = self._clock() - arrived_at
            record = CompletedRecord(
                customer_id=customer.id,
                waiting_time=elapsed - customer.service_needed,
                service_time=customer.service_needed,
            )
            self._completed.append(record)
        logger.debug(
            "Customer %d left after %.3fs (waited %.3fs)",
            customer.id, elapsed, record.waiting_time,
        )
        return record

    @property
    def processed_count(self) -> int:
        """Customers recorded as both arrived and departed."""
        with self._customer_lock:
            return len(self._completed)

    @property
    def in_flight_count(self) -> int:
        """Customers recorded as arrived but not yet departed."""
        with self._customer_lock:
            return len(self._in_flight)

    def completed_records(self) -> list[CompletedRecord]:
        """Copy of the completed records, in departure order."""
        with self._customer_lock:
            return list(self._completed)

    def average_service_time(self, precision: int = 2) -> float:
        """Mean service need of processed customers, in seconds. 0 when none.

        Raises:
            InvalidArgumentError: If ``precision`` is outside [0, 3].
        """
        _check_precision(precision)
        with self._customer_lock:
            values = [r.service_time for r in self._completed]
        if not values:
            return 0.0
        return round(sum(values) / len(values), precision)

    def average_waiting_time(self, precision: int = 2) -> float:
        """Mean waiting time of processed customers, in seconds. 0 when none.

        Raises:
            InvalidArgumentError: If ``precision`` is outside [0, 3].
        """
        _check_precision(precision)
        with self._customer_lock:
            values = [r.waiting_time for r in self._completed]
        if not values:
            return 0.0
        return round(sum(values) / len(values), precision)

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------

    def _record(self, queue: int) -> _IdleRecord:
        if not 0 <= queue < len(self._idle):
            raise OutOfRangeError(f"queue {queue} does not exist")
        return self._idle[queue]

    def set_queue_idle(self, queue: int, idle: bool) -> None:
        """Start (``idle=True``) or stop (``idle=False``) timing idleness of a queue.

        Repeating the current state is a no-op. Stopping adds the elapsed idle
        interval to the queue's total.

        Raises:
            OutOfRangeError: If ``queue`` does not exist.
        """
        with self._queue_lock:
            record = self._record(queue)
            if record.idle == idle:
                return
            now = self._clock()
            if idle:
                record.idle_since = now
            else:
                record.total += now - record.idle_since
                record.idle_since = 0.0
            record.idle = idle

    def is_queue_idle(self, queue: int) -> bool:
        with self._queue_lock:
            return self._record(queue).idle

    def queue_idle_total(self, queue: int, precision: int = 2) -> float:
        """Committed idle seconds of ``queue``.

        An interval still open (queue currently idle) is not included. To get
        an exact figure, call ``set_queue_idle(queue, False)`` first and
        optionally ``set_queue_idle(queue, True)`` afterwards.

        Raises:
            OutOfRangeError: If ``queue`` does not exist.
            InvalidArgumentError: If ``precision`` is outside [0, 3].
        """
        with self._queue_lock:
            total = self._record(queue).total
        _check_precision(precision)
        return round(total, precision)

    def finalize_idle(self) -> None:
        """Commit every open idle interval."""
        for queue in range(len(self._idle)):
            self.set_queue_idle(queue, False)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """Completed records as a DataFrame (customer_id, waiting_time, service_time)."""
        records = self.completed_records()
        return pd.DataFrame(
            {
                "customer_id": [r.customer_id for r in records],
                "waiting_time": [r.waiting_time for r in records],
                "service_time": [r.service_time for r in records],
            }
        )

    def idle_dataframe(self, precision: int = 2) -> pd.DataFrame:
        """Committed idle time per queue as a DataFrame (queue, idle_time)."""
        totals = [self.queue_idle_total(i, precision) for i in range(self.queue_count)]
        return pd.DataFrame({"queue": list(range(self.queue_count)), "idle_time": totals})
