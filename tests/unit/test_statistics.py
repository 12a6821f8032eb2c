"""Unit tests for Statistics."""

from __future__ import annotations

import threading

import pytest

from queuesimulator.core.timers import ManualClock
from queuesimulator.entities import Customer
from queuesimulator.errors import (
    DuplicateArrivalError,
    InvalidArgumentError,
    OutOfRangeError,
    UnknownDepartureError,
)
from queuesimulator.instrumentation import Statistics


@pytest.fixture
def stats(clock: ManualClock) -> Statistics:
    return Statistics(queue_count=2, clock=clock)


class TestCustomerRecords:
    """Tests for record_arrival and record_departure."""

    def test_waiting_time_excludes_service(self, clock, stats):
        customer = Customer(1, 4)
        stats.record_arrival(customer)
        clock.advance(10)

        record = stats.record_departure(customer)

        assert record.waiting_time == pytest.approx(6.0)
        assert record.service_time == 4
        assert stats.processed_count == 1
        assert stats.in_flight_count == 0

    def test_served_immediately_waits_zero(self, clock, stats):
        customer = Customer(1, 3)
        stats.record_arrival(customer)
        clock.advance(3)

        assert stats.record_departure(customer).waiting_time == 0

    def test_duplicate_arrival_rejected(self, stats):
        customer = Customer(1, 3)
        stats.record_arrival(customer)
        with pytest.raises(DuplicateArrivalError):
            stats.record_arrival(customer)

    def test_unknown_departure_rejected(self, stats):
        with pytest.raises(UnknownDepartureError):
            stats.record_departure(Customer(1, 3))

    def test_departure_cannot_be_recorded_twice(self, clock, stats):
        customer = Customer(1, 3)
        stats.record_arrival(customer)
        clock.advance(5)
        stats.record_departure(customer)

        with pytest.raises(UnknownDepartureError):
            stats.record_departure(customer)

    def test_completed_records_in_departure_order(self, clock, stats):
        a, b = Customer(1, 1), Customer(2, 1)
        stats.record_arrival(a)
        stats.record_arrival(b)
        clock.advance(2)
        stats.record_departure(b)
        stats.record_departure(a)

        assert [r.customer_id for r in stats.completed_records()] == [2, 1]


class TestAverages:
    """Tests for average_service_time and average_waiting_time."""

    def test_zero_when_nothing_processed(self, stats):
        assert stats.average_service_time() == 0
        assert stats.average_waiting_time() == 0

    def test_rounding(self, clock, stats):
        needs = [1, 1, 2]
        customers = [Customer(i + 1, n) for i, n in enumerate(needs)]
        for c in customers:
            stats.record_arrival(c)
        clock.advance(3)
        for c in customers:
            stats.record_departure(c)

        # mean need 4/3, mean wait (2 + 2 + 1) / 3
        assert stats.average_service_time(2) == 1.33
        assert stats.average_service_time(0) == 1
        assert stats.average_waiting_time(3) == 1.667

    @pytest.mark.parametrize("precision", [-1, 4])
    def test_invalid_precision(self, stats, precision):
        with pytest.raises(InvalidArgumentError):
            stats.average_waiting_time(precision)
        with pytest.raises(InvalidArgumentError):
            stats.average_service_time(precision)

    def test_invalid_argument_is_value_and_range_error(self):
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(InvalidArgumentError, OutOfRangeError)


class TestQueueIdle:
    """Tests for queue idle time accounting."""

    def test_idle_interval_committed_on_stop(self, clock, stats):
        stats.set_queue_idle(0, True)
        clock.advance(2.5)
        stats.set_queue_idle(0, False)

        assert stats.queue_idle_total(0) == 2.5
        assert stats.queue_idle_total(1) == 0

    def test_open_interval_not_included(self, clock, stats):
        stats.set_queue_idle(0, True)
        clock.advance(4)

        assert stats.is_queue_idle(0)
        assert stats.queue_idle_total(0) == 0

    def test_repeated_state_is_noop(self, clock, stats):
        stats.set_queue_idle(0, True)
        clock.advance(1)
        stats.set_queue_idle(0, True)
        clock.advance(1)
        stats.set_queue_idle(0, False)
        stats.set_queue_idle(0, False)

        assert stats.queue_idle_total(0) == 2

    def test_intervals_accumulate(self, clock, stats):
        for _ in range(3):
            stats.set_queue_idle(1, True)
            clock.advance(1)
            stats.set_queue_idle(1, False)
            clock.advance(5)

        assert stats.queue_idle_total(1) == 3

    def test_finalize_commits_all(self, clock, stats):
        stats.set_queue_idle(0, True)
        stats.set_queue_idle(1, True)
        clock.advance(3)

        stats.finalize_idle()

        assert stats.queue_idle_total(0) == 3
        assert stats.queue_idle_total(1) == 3
        assert not stats.is_queue_idle(0)

    @pytest.mark.parametrize("queue", [-1, 2])
    def test_bad_queue_index(self, stats, queue):
        with pytest.raises(OutOfRangeError):
            stats.set_queue_idle(queue, True)
        with pytest.raises(OutOfRangeError):
            stats.queue_idle_total(queue)

    def test_bad_precision_for_idle_total(self, stats):
        with pytest.raises(InvalidArgumentError):
            stats.queue_idle_total(0, precision=5)

    def test_queue_count_validated(self):
        with pytest.raises(ValueError):
            Statistics(queue_count=0)


class TestConcurrency:
    """Statistics can be updated from several threads."""

    def test_parallel_arrivals_and_departures(self, clock):
        stats = Statistics(queue_count=1, clock=clock)

        def worker(offset: int):
            for i in range(100):
                customer = Customer(offset + i, 1)
                stats.record_arrival(customer)
                stats.record_departure(customer)

        threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert stats.processed_count == 400
        assert stats.in_flight_count == 0


class TestExport:
    """Tests for DataFrame export."""

    def test_to_dataframe(self, clock, stats):
        customer = Customer(7, 2)
        stats.record_arrival(customer)
        clock.advance(5)
        stats.record_departure(customer)

        df = stats.to_dataframe()

        assert list(df.columns) == ["customer_id", "waiting_time", "service_time"]
        assert df.iloc[0]["customer_id"] == 7
        assert df.iloc[0]["waiting_time"] == pytest.approx(3.0)

    def test_empty_dataframe(self, stats):
        assert stats.to_dataframe().empty

    def test_idle_dataframe(self, clock, stats):
        stats.set_queue_idle(1, True)
        clock.advance(2)
        stats.finalize_idle()

        df = stats.idle_dataframe()

        assert df["queue"].tolist() == [0, 1]
        assert df["idle_time"].tolist() == [0, 2]
