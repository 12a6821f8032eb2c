"""Summary of a simulation run.

SimulationSummary is built by ``Simulator.summary()`` and logged when a run
finishes. Its string form is the statistics block of the simulation log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SimulationSummary:
    """Aggregate figures for one run.

    Attributes:
        state: Lifecycle state name at the time the summary was taken.
        elapsed_s: Whole seconds since the run started.
        customers_processed: Customers that arrived and left.
        average_service_time: Mean service need, seconds.
        average_waiting_time: Mean waiting time, seconds.
        queue_idle_times: Committed idle seconds, indexed by queue.
    """
    state: str
    elapsed_s: int
    customers_processed: int
    average_service_time: float
    average_waiting_time: float
    queue_idle_times: list[float] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [
            "STATISTICS",
            "-------------",
            f"Simulation Running time = {self.elapsed_s} seconds",
            f"Customers Processed = {self.customers_processed}",
            f"Average Service Need of Customers = {self.average_service_time}",
            f"Average Waiting Time of Customers = {self.average_waiting_time}",
        ]
        for i, idle in enumerate(self.queue_idle_times):
            lines.append(f"Total Empty Time of Queue {i} = {idle}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "elapsed_s": self.elapsed_s,
            "customers_processed": self.customers_processed,
            "average_service_time": self.average_service_time,
            "average_waiting_time": self.average_waiting_time,
            "queue_idle_times": list(self.queue_idle_times),
        }
