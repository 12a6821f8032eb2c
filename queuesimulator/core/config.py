"""Simulator configuration and its validating builder.

SimulatorConfig is immutable and checks every field when constructed, so an
invalid configuration can never reach a running simulator. SimulatorBuilder
offers the same checks one parameter at a time and produces a Simulator.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from queuesimulator.errors import ConfigurationError, SimulationStateError

if TYPE_CHECKING:
    from queuesimulator.core.simulator import Simulator
    from queuesimulator.core.timers import TimeSource

MIN_QUEUES = 1
MAX_QUEUES = 10
MIN_QUEUE_CAPACITY = 1
MAX_QUEUE_CAPACITY = 10

DEFAULT_QUEUES = 6
DEFAULT_QUEUE_CAPACITY = 10
DEFAULT_CUSTOMERS = 40
DEFAULT_MIN_ARRIVAL = 4
DEFAULT_MAX_ARRIVAL = 8
DEFAULT_MIN_SERVICE = 12
DEFAULT_MAX_SERVICE = 20
DEFAULT_REORGANIZATION = 4


@dataclass(frozen=True)
class SimulatorConfig:
    """Parameters of one simulation run. All durations are whole seconds.

    Attributes:
        queues: Number of parallel queues, in [1, 10].
        queue_capacity: Customers each queue can hold, in [1, 10].
        customers: Customers to simulate, >= 1.
        min_arrival: Shortest gap between arrivals, >= 1.
        max_arrival: Longest gap between arrivals, >= min_arrival.
        min_service: Smallest service need, >= 1.
        max_service: Largest service need, >= min_service.
        reorganization: Period of the load-balancing pass; 0 or negative
            disables it.
        seed: Seed for arrival gaps and service needs, or None for a fresh one.
    """
    queues: int = DEFAULT_QUEUES
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    customers: int = DEFAULT_CUSTOMERS
    min_arrival: int = DEFAULT_MIN_ARRIVAL
    max_arrival: int = DEFAULT_MAX_ARRIVAL
    min_service: int = DEFAULT_MIN_SERVICE
    max_service: int = DEFAULT_MAX_SERVICE
    reorganization: int = DEFAULT_REORGANIZATION
    seed: int | None = None

    def __post_init__(self):
        if not MIN_QUEUES <= self.queues <= MAX_QUEUES:
            raise ConfigurationError(
                f"queues must be in [{MIN_QUEUES}, {MAX_QUEUES}], got {self.queues}"
            )
        if not MIN_QUEUE_CAPACITY <= self.queue_capacity <= MAX_QUEUE_CAPACITY:
            raise ConfigurationError(
                f"queue_capacity must be in [{MIN_QUEUE_CAPACITY}, {MAX_QUEUE_CAPACITY}], "
                f"got {self.queue_capacity}"
            )
        if self.customers < 1:
            raise ConfigurationError(f"customers must be >= 1, got {self.customers}")
        if self.min_arrival < 1 or self.min_arrival > self.max_arrival:
            raise ConfigurationError(
                f"arrival interval must satisfy 1 <= min <= max, "
                f"got [{self.min_arrival}, {self.max_arrival}]"
            )
        if self.min_service < 1 or self.min_service > self.max_service:
            raise ConfigurationError(
                f"service interval must satisfy 1 <= min <= max, "
                f"got [{self.min_service}, {self.max_service}]"
            )

    @property
    def reorganization_enabled(self) -> bool:
        return self.reorganization > 0

    def describe(self) -> list[str]:
        """Parameter lines for the head of a simulation log."""
        period = self.reorganization if self.reorganization_enabled else "disabled"
        return [
            f"Number of Queues = {self.queues}",
            f"Number of Customers = {self.customers}",
            f"Maximum Queue Size = {self.queue_capacity}",
            f"Customers Arrival Interval = [{self.min_arrival},{self.max_arrival}]",
            f"Customers Service Need Interval = [{self.min_service},{self.max_service}]",
            f"Customers Reorganization Period = {period}",
        ]


class SimulatorBuilder:
    """Collects parameters one at a time, then builds a Simulator.

    Each setter validates immediately and returns the builder, so calls can be
    chained. A builder is single-use: once ``build()`` has been called, every
    further call raises SimulationStateError.

    Example:
        >>> sim = (Simulator.builder()
        ...        .queues(3)
        ...        .customers(20)
        ...        .arrival_interval(1, 3)
        ...        .build())
    """

    def __init__(self, config: SimulatorConfig | None = None):
        self._config = config or SimulatorConfig()
        self._built = False

    def _set(self, **changes: Any) -> SimulatorBuilder:
        self._check()
        self._config = replace(self._config, **changes)
        return self

    def _check(self) -> None:
        if self._built:
            raise SimulationStateError("simulator already built")

    def queues(self, count: int) -> SimulatorBuilder:
        return self._set(queues=count)

    def queue_capacity(self, capacity: int) -> SimulatorBuilder:
        return self._set(queue_capacity=capacity)

    def customers(self, count: int) -> SimulatorBuilder:
        return self._set(customers=count)

    def arrival_interval(self, min_s: int, max_s: int) -> SimulatorBuilder:
        return self._set(min_arrival=min_s, max_arrival=max_s)

    def service_time(self, min_s: int, max_s: int) -> SimulatorBuilder:
        return self._set(min_service=min_s, max_service=max_s)

    def reorganization(self, period_s: int) -> SimulatorBuilder:
        """Set the load-balancing period. 0 or negative disables it."""
        return self._set(reorganization=period_s)

    def seed(self, seed: int | None) -> SimulatorBuilder:
        return self._set(seed=seed)

    def config(self) -> SimulatorConfig:
        """The configuration collected so far."""
        return self._config

    def build(self, clock: TimeSource | None = None) -> Simulator:
        """Create the Simulator. The builder cannot be used afterwards.

        Args:
            clock: Time source for the run. Defaults to wall-clock time.
        """
        from queuesimulator.core.simulator import Simulator

        self._check()
        self._built = True
        return Simulator(self._config, clock=clock)
