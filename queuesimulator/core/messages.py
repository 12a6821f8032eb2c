"""Notifications emitted by the simulator to its subscribers.

Each notification is a small frozen dataclass that encodes to the
pipe-delimited form used by simulation logs and display layers:

    S|S        simulation started
    S|F        simulation finished (all customers processed)
    S|X        simulation stopped externally
    S|E        simulation terminated by a fatal error
    Q|3|O      queue 3 opened
    Q|7|C      queue 7 closed
    Q|F        every queue at the fixed capacity bound
    Q|R        a reorganization pass moved at least one customer
    C|27|A|2   customer 27 arrived and joined queue 2
    C|109|L|5  customer 109 was served at queue 5 and left

``parse_notification`` turns any string back into a notification. Shapes it
does not recognise come back as UnknownNotification so that consumers built
against this version keep working when new shapes are added.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

PROTOCOL_VERSION = 1

SEPARATOR = "|"


class Notification:
    """Base class for every notification shape."""

    def encode(self) -> str:
        raise NotImplementedError

    @property
    def is_terminal(self) -> bool:
        """True for the notifications that end a run."""
        return False

    def __str__(self) -> str:
        return self.encode()


@dataclass(frozen=True)
class SimulationStarted(Notification):
    def encode(self) -> str:
        return "S|S"


@dataclass(frozen=True)
class SimulationFinished(Notification):
    def encode(self) -> str:
        return "S|F"

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class SimulationStopped(Notification):
    def encode(self) -> str:
        return "S|X"

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class SimulationErrored(Notification):
    """The run hit a fatal error. The cause is logged, not carried here."""

    def encode(self) -> str:
        return "S|E"

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class QueueOpened(Notification):
    queue: int

    def encode(self) -> str:
        return f"Q|{self.queue}|O"


@dataclass(frozen=True)
class QueueClosed(Notification):
    queue: int

    def encode(self) -> str:
        return f"Q|{self.queue}|C"


@dataclass(frozen=True)
class AllQueuesFull(Notification):
    def encode(self) -> str:
        return "Q|F"


@dataclass(frozen=True)
class QueuesReorganized(Notification):
    def encode(self) -> str:
        return "Q|R"


@dataclass(frozen=True)
class CustomerArrived(Notification):
    customer_id: int
    queue: int

    def encode(self) -> str:
        return f"C|{self.customer_id}|A|{self.queue}"


@dataclass(frozen=True)
class CustomerServed(Notification):
    customer_id: int
    queue: int

    def encode(self) -> str:
        return f"C|{self.customer_id}|L|{self.queue}"


@dataclass(frozen=True)
class UnknownNotification(Notification):
    """A message shape this version does not know. Safe to ignore."""

    raw: str

    def encode(self) -> str:
        return self.raw


Subscriber = Callable[[Notification], None]
"""Signature of a notification subscriber."""

_SIMPLE: dict[str, Notification] = {
    "S|S": SimulationStarted(),
    "S|F": SimulationFinished(),
    "S|X": SimulationStopped(),
    "S|E": SimulationErrored(),
    "Q|F": AllQueuesFull(),
    "Q|R": QueuesReorganized(),
}


def _as_index(token: str) -> int | None:
    if not (token.isascii() and token.isdecimal()):
        return None
    return int(token)


def parse_notification(raw: str) -> Notification:
    """Decode a pipe-delimited message.

    Never raises for well-typed input: anything unrecognised is returned as
    UnknownNotification.
    """
    simple = _SIMPLE.get(raw)
    if simple is not None:
        return simple

    tokens = raw.split(SEPARATOR)
    if len(tokens) == 3 and tokens[0] == "Q":
        queue = _as_index(tokens[1])
        if queue is not None and tokens[2] == "O":
            return QueueOpened(queue)
        if queue is not None and tokens[2] == "C":
            return QueueClosed(queue)
    elif len(tokens) == 4 and tokens[0] == "C":
        customer_id = _as_index(tokens[1])
        queue = _as_index(tokens[3])
        if customer_id is not None and queue is not None:
            if tokens[2] == "A":
                return CustomerArrived(customer_id, queue)
            if tokens[2] == "L":
                return CustomerServed(customer_id, queue)
    return UnknownNotification(raw)


def describe(notification: Notification | str) -> str:
    """Render a notification as a sentence for logs and status bars.

    Strings are parsed first. Unknown shapes are returned unchanged.
    """
    if isinstance(notification, str):
        if not notification:
            return notification
        notification = parse_notification(notification)

    text = _FIXED_TEXT.get(type(notification))
    if text is not None:
        return text
    if isinstance(notification, QueueOpened):
        return f"Queue {notification.queue} was opened."
    if isinstance(notification, QueueClosed):
        return f"Queue {notification.queue} was closed."
    if isinstance(notification, CustomerArrived):
        return f"Customer {notification.customer_id} has arrived at Queue {notification.queue}"
    if isinstance(notification, CustomerServed):
        return f"Customer {notification.customer_id} was served at Queue {notification.queue} and left."
    return notification.encode()


_FIXED_TEXT: dict[type, str] = {
    SimulationStarted: "Simulation Started",
    SimulationFinished: "Simulation Finished Successfully",
    SimulationErrored: "Simulation Finished as the Result of an Error",
    SimulationStopped: "Simulation was stopped manually.",
    AllQueuesFull: "All Queues are Full",
    QueuesReorganized: "The Customers have reorganized themselves to other Queues",
}
