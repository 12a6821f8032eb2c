"""queuesimulator: a timer-driven simulation of parallel service queues.

Customers arrive at random intervals, join the shortest open queue, wait,
are served and leave. Queues can be opened and closed while the run is
live, and an optional periodic pass rebalances long queues into short ones.

Example:
    import queuesimulator as qs

    sim = (qs.Simulator.builder()
           .queues(3)
           .customers(10)
           .arrival_interval(1, 2)
           .service_time(2, 4)
           .build())
    sim.subscribe(lambda n: print(qs.describe(n)))
    sim.simulate()
    sim.wait()
    print(sim.summary())

Logging is silent by default; see ``queuesimulator.logging_config``.
"""

import logging

from queuesimulator.core import (
    FULL_QUEUE_THRESHOLD,
    PROTOCOL_VERSION,
    AllQueuesFull,
    CustomerArrived,
    CustomerServed,
    ManualClock,
    Notification,
    QueueClosed,
    QueueOpened,
    QueuesReorganized,
    SimulationErrored,
    SimulationFinished,
    SimulationStarted,
    SimulationState,
    SimulationStopped,
    Simulator,
    SimulatorBuilder,
    SimulatorConfig,
    SimulatorSnapshot,
    Timer,
    UnknownNotification,
    WallClock,
    describe,
    parse_notification,
)
from queuesimulator.entities import Customer, ServiceQueue
from queuesimulator.errors import (
    CapacityExhaustedError,
    ConfigurationError,
    InvalidArgumentError,
    InvariantViolationError,
    OutOfRangeError,
    QueueSimulatorError,
    SimulationStateError,
)
from queuesimulator.instrumentation import CompletedRecord, SimulationSummary, Statistics
from queuesimulator.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    enable_simulation_log_file,
    set_level,
    set_module_level,
)
from queuesimulator.simulation_log import SimulationLog

__version__ = "0.1.0"

# Library stays silent until the application configures logging
logging.getLogger("queuesimulator").addHandler(logging.NullHandler())

__all__ = [
    "FULL_QUEUE_THRESHOLD",
    "PROTOCOL_VERSION",
    "AllQueuesFull",
    "CapacityExhaustedError",
    "CompletedRecord",
    "ConfigurationError",
    "Customer",
    "CustomerArrived",
    "CustomerServed",
    "InvalidArgumentError",
    "InvariantViolationError",
    "ManualClock",
    "Notification",
    "OutOfRangeError",
    "QueueClosed",
    "QueueOpened",
    "QueueSimulatorError",
    "QueuesReorganized",
    "ServiceQueue",
    "SimulationErrored",
    "SimulationFinished",
    "SimulationLog",
    "SimulationStarted",
    "SimulationState",
    "SimulationStateError",
    "SimulationStopped",
    "SimulationSummary",
    "Simulator",
    "SimulatorBuilder",
    "SimulatorConfig",
    "SimulatorSnapshot",
    "Statistics",
    "Timer",
    "UnknownNotification",
    "WallClock",
    "configure_from_env",
    "describe",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "enable_simulation_log_file",
    "parse_notification",
    "set_level",
    "set_module_level",
]
