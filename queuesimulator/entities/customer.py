"""Customer value objects and the process-wide customer ID sequence.

IDs come from a single locked counter so that arrivals fired on different
timer threads never share an ID. ``reset_ids()`` restarts the sequence at 1;
the engine calls it at the start of every run.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass

# Internal counter and lock producing monotonically increasing IDs
_counter = 0
_counter_lock = threading.Lock()
_MAX_ID = 2**31 - 1

_rng = random.Random()


def next_id() -> int:
    """Return the next customer ID (1, 2, 3, ... since the last reset).

    Raises:
        OverflowError: If the sequence is exhausted without a reset.
    """
    global _counter
    with _counter_lock:
        if _counter >= _MAX_ID:
            raise OverflowError("customer ID sequence exhausted; call reset_ids()")
        _counter += 1
        return _counter


def reset_ids() -> None:
    """Restart the ID sequence so the next customer gets ID 1."""
    global _counter
    with _counter_lock:
        _counter = 0


@dataclass(frozen=True, eq=True)
class Customer:
    """One arriving customer: an identity and the service time it needs.

    Equality and hashing use both ``id`` and ``service_needed``. Ordering
    compares ``service_needed`` only, so two customers with different IDs and
    the same service need are neither equal nor ordered apart. That is a
    partial order: sorting by need is meaningful, identity is not.

    Attributes:
        id: Unique (per run) positive integer.
        service_needed: Whole seconds of service this customer requires.
    """

    id: int
    service_needed: int

    @classmethod
    def arrive(
        cls,
        min_service: int,
        max_service: int,
        rng: random.Random | None = None,
    ) -> Customer:
        """Create a customer with the next ID and a random service need.

        The need is drawn uniformly from ``[min_service, max_service]``,
        both ends inclusive.

        Raises:
            ValueError: If ``min_service > max_service``.
        """
        if min_service > max_service:
            raise ValueError(
                f"min_service must be <= max_service, got [{min_service}, {max_service}]"
            )
        service = (rng or _rng).randint(min_service, max_service)
        return cls(id=next_id(), service_needed=service)

    def __lt__(self, other: Customer) -> bool:
        if not isinstance(other, Customer):
            return NotImplemented
        return self.service_needed < other.service_needed

    def __le__(self, other: Customer) -> bool:
        if not isinstance(other, Customer):
            return NotImplemented
        return self.service_needed <= other.service_needed

    def __gt__(self, other: Customer) -> bool:
        if not isinstance(other, Customer):
            return NotImplemented
        return self.service_needed > other.service_needed

    def __ge__(self, other: Customer) -> bool:
        if not isinstance(other, Customer):
            return NotImplemented
        return self.service_needed >= other.service_needed
