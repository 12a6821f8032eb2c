"""Lifecycle states and read-only snapshots of a simulator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SimulationState(Enum):
    """Simulator lifecycle.

    NOT_STARTED -> RUNNING -> one of FINISHED, STOPPED, ERRORED. The three
    end states are absorbing: once reached, no event changes anything.
    """
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"
    STOPPED = "stopped"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (SimulationState.FINISHED, SimulationState.STOPPED, SimulationState.ERRORED)


@dataclass(frozen=True)
class QueueSnapshot:
    """One queue as seen at snapshot time."""
    index: int
    is_open: bool
    size: int
    capacity: int
    pending_close: bool


@dataclass(frozen=True)
class SimulatorSnapshot:
    """Consistent view of the simulator, taken under the engine lock.

    Attributes:
        state: Lifecycle state.
        elapsed_s: Whole seconds since the run started.
        customers_processed: Customers that arrived and left.
        queues: Per-queue view, indexed by queue.
    """
    state: SimulationState
    elapsed_s: int
    customers_processed: int
    queues: tuple[QueueSnapshot, ...]
