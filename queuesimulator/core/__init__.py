"""Simulation engine: configuration, timers, notifications and the Simulator."""

from queuesimulator.core.config import SimulatorBuilder, SimulatorConfig
from queuesimulator.core.messages import (
    PROTOCOL_VERSION,
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
    UnknownNotification,
    describe,
    parse_notification,
)
from queuesimulator.core.simulator import FULL_QUEUE_THRESHOLD, Simulator
from queuesimulator.core.state import QueueSnapshot, SimulationState, SimulatorSnapshot
from queuesimulator.core.timers import (
    BaseTimer,
    ManualClock,
    ManualTimer,
    TimeSource,
    Timer,
    TimerTask,
    WallClock,
)

__all__ = [
    "FULL_QUEUE_THRESHOLD",
    "PROTOCOL_VERSION",
    "AllQueuesFull",
    "BaseTimer",
    "CustomerArrived",
    "CustomerServed",
    "ManualClock",
    "ManualTimer",
    "Notification",
    "QueueClosed",
    "QueueOpened",
    "QueueSnapshot",
    "QueuesReorganized",
    "SimulationErrored",
    "SimulationFinished",
    "SimulationStarted",
    "SimulationState",
    "SimulationStopped",
    "Simulator",
    "SimulatorBuilder",
    "SimulatorConfig",
    "SimulatorSnapshot",
    "Subscriber",
    "TimeSource",
    "Timer",
    "TimerTask",
    "UnknownNotification",
    "WallClock",
    "describe",
    "parse_notification",
]
