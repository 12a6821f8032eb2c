"""Exception hierarchy for queuesimulator.

Errors fall into four groups:

- ConfigurationError: rejected builder parameters. Raised before a run starts.
- OutOfRangeError / InvalidArgumentError: bad queue index or precision from a
  caller. Raised synchronously and never change the run state.
- InvariantViolationError and its subclasses: a scheduling bug or capacity
  exhaustion detected inside an event handler. The engine captures these,
  reports ``S|E`` and moves to the ERRORED state.
- SimulationStateError / TimerCancelledError: misuse of an object's lifecycle.
"""

from __future__ import annotations


class QueueSimulatorError(Exception):
    """Base class for all queuesimulator errors."""


class ConfigurationError(QueueSimulatorError, ValueError):
    """A configuration parameter is outside its accepted range."""


class OutOfRangeError(QueueSimulatorError, IndexError):
    """A queue index does not name an existing queue."""


class InvalidArgumentError(OutOfRangeError, ValueError):
    """An argument such as a rounding precision is outside its accepted range."""


class SimulationStateError(QueueSimulatorError, RuntimeError):
    """An operation is not allowed in the object's current lifecycle state."""


class TimerCancelledError(QueueSimulatorError, RuntimeError):
    """A task was scheduled on a timer that has already been cancelled."""


class InvariantViolationError(QueueSimulatorError, RuntimeError):
    """Internal state contradicts the scheduling model. Always fatal to a run."""


class CapacityExhaustedError(InvariantViolationError):
    """A customer arrived while every queue was at the fixed capacity bound."""


class DuplicateArrivalError(InvariantViolationError):
    """A customer was recorded as arrived while already in flight."""


class UnknownDepartureError(InvariantViolationError):
    """A customer was recorded as departed without a recorded arrival."""


class QueueStateError(InvariantViolationError):
    """Base class for operations rejected by a queue's current state."""


class ClosedError(QueueStateError):
    """A customer was pushed onto a closed queue."""


class FullError(QueueStateError):
    """A customer was pushed onto a queue already at capacity."""


class EmptyError(QueueStateError):
    """A customer was removed from an empty queue."""


class NotEmptyError(QueueStateError):
    """A queue was closed while customers were still waiting in it."""
