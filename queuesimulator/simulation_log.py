"""Human-readable simulation log.

SimulationLog subscribes to a Simulator and writes a narrative of the run
through the ``queuesimulator.simulation_log`` logger:

    Simulation of Queues Log
    PARAMETERS
    --------------
    Number of Queues = 6
    ...
    Simulation Started
    Customer 1 has arrived at Queue 0
    ...
    Simulation Finished Successfully
    -------------
    STATISTICS
    ...

Route it to a file with ``enable_simulation_log_file()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from queuesimulator.core.messages import Notification, SimulationErrored, describe
from queuesimulator.logging_config import SIMULATION_LOGGER_NAME

if TYPE_CHECKING:
    from queuesimulator.core.simulator import Simulator


class SimulationLog:
    """Subscriber that narrates a run.

    The parameter header is written on construction, so create it before
    calling ``simulate()``.

    Args:
        simulator: Simulator to follow.
        logger: Destination logger. Defaults to ``queuesimulator.simulation_log``.
        precision: Decimal places of the final statistics.
    """

    def __init__(
        self,
        simulator: Simulator,
        logger: logging.Logger | None = None,
        precision: int = 2,
    ):
        self._simulator = simulator
        self._logger = logger or logging.getLogger(SIMULATION_LOGGER_NAME)
        self._precision = precision
        self._write_header()
        self._unsubscribe = simulator.subscribe(self)

    def _write_header(self) -> None:
        log = self._logger.info
        log("Simulation of Queues Log")
        log("PARAMETERS")
        log("--------------")
        for line in self._simulator.config.describe():
            log(line)
        log("--------------")

    def __call__(self, notification: Notification) -> None:
        if isinstance(notification, SimulationErrored) and self._simulator.error is not None:
            self._logger.info(str(self._simulator.error))
        self._logger.info(describe(notification))
        if notification.is_terminal:
            self._write_statistics()
            self.close()

    def _write_statistics(self) -> None:
        self._logger.info("-------------")
        for line in str(self._simulator.summary(self._precision)).splitlines():
            self._logger.info(line)

    def close(self) -> None:
        """Stop following the simulator."""
        self._unsubscribe()
