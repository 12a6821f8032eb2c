"""Bounded FIFO service queue with an open/closed lifecycle.

ServiceQueue does no locking of its own. The engine mutates several queues
inside one critical section (routing, reorganization), so it holds its own
lock around every call instead.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from queuesimulator.entities.customer import Customer
from queuesimulator.errors import ClosedError, EmptyError, FullError, NotEmptyError


class ServiceQueue:
    """A counter's line of customers.

    Customers join at the tail and are served from the head. Reorganization
    may also take customers from the tail. A queue starts closed and may only
    be closed again once it is empty.

    Args:
        capacity: Maximum number of customers the queue holds. Must be >= 1.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._entries: deque[Customer] = deque()
        self._open = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def is_full(self) -> bool:
        return len(self._entries) >= self._capacity

    def open(self) -> None:
        """Open the queue. Opening an open queue does nothing."""
        self._open = True

    def close(self) -> None:
        """Close the queue.

        Raises:
            NotEmptyError: If customers are still waiting.
        """
        if self._entries:
            raise NotEmptyError(f"cannot close queue holding {len(self._entries)} customer(s)")
        self._open = False

    def push_back(self, customer: Customer) -> None:
        """Append a customer at the tail.

        Raises:
            ClosedError: If the queue is closed.
            FullError: If the queue is at capacity.
        """
        if not self._open:
            raise ClosedError("queue is closed")
        if len(self._entries) >= self._capacity:
            raise FullError(f"queue is full (capacity {self._capacity})")
        self._entries.append(customer)

    def pop_front(self) -> Customer:
        """Remove and return the customer at the head.

        Raises:
            EmptyError: If the queue has no customers.
        """
        if not self._entries:
            raise EmptyError("no customers in queue")
        return self._entries.popleft()

    def pop_back(self) -> Customer:
        """Remove and return the customer at the tail.

        Raises:
            EmptyError: If the queue has no customers.
        """
        if not self._entries:
            raise EmptyError("no customers in queue")
        return self._entries.pop()

    def peek_front(self) -> Customer:
        """Return the customer at the head without removing it.

        Raises:
            EmptyError: If the queue has no customers.
        """
        if not self._entries:
            raise EmptyError("no customers in queue")
        return self._entries[0]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Customer]:
        return iter(tuple(self._entries))

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"ServiceQueue({state}, {len(self._entries)}/{self._capacity})"
