"""Ticket counters: customers queueing at parallel service counters.

Customers arrive every few seconds, join the shortest open counter, wait,
are served and leave. Every few seconds the line reorganizes itself: people
at the back of a long line walk over to a short one. An operator can close
a counter (it closes once its line is served) and open it again later.

## Architecture Diagram

```
+---------------------------------------------------------------+
|                    TICKET COUNTER SIMULATION                  |
+---------------------------------------------------------------+

    +----------+        +-----------------+        +---------+
    | Arrivals |------->| shortest open   |------->| Served  |
    | (timer)  |        | counter 0..N-1  |        | (leave) |
    +----------+        +-----------------+        +---------+
                          ^            |
                          | tail moves |  every reorganization period
                          +------------+
```

By default the run happens in real time on the wall clock. ``--fast``
replays it on a manual clock, one simulated second per step, so a
default-sized run finishes instantly with identical events for a given seed.
"""

from __future__ import annotations

import argparse
import random
from dataclasses import dataclass

from queuesimulator import (
    ManualClock,
    Notification,
    SimulationLog,
    Simulator,
    SimulatorConfig,
    describe,
    enable_console_logging,
    enable_simulation_log_file,
)
from queuesimulator.instrumentation.plotting import plot_statistics


# =============================================================================
# Operator script
# =============================================================================


@dataclass(frozen=True)
class OperatorPlan:
    """Close one counter at the start and open it again later.

    Attributes:
        counter: Counter index to close, or None to leave every counter open.
        reopen_after: Customers served before the counter is opened again.
    """

    counter: int | None = None
    reopen_after: int = 10


class Operator:
    """Subscriber that follows an OperatorPlan."""

    def __init__(self, simulator: Simulator, plan: OperatorPlan):
        self._simulator = simulator
        self._plan = plan
        self._served = 0

    def __call__(self, notification: Notification) -> None:
        code = notification.encode()
        if code == "S|S" and self._plan.counter is not None:
            self._simulator.request_close(self._plan.counter)
        elif "|L|" in code:
            self._served += 1
            if self._plan.counter is not None and self._served == self._plan.reopen_after:
                self._simulator.open_queue(self._plan.counter)


# =============================================================================
# Simulation Runner
# =============================================================================


def run_ticket_counters(
    config: SimulatorConfig,
    plan: OperatorPlan | None = None,
    fast: bool = False,
    quiet: bool = False,
) -> Simulator:
    """Run one simulation to its end and return the simulator.

    Args:
        config: Simulator parameters.
        plan: Operator actions. Defaults to no intervention.
        fast: Replay on a ManualClock instead of waiting in real time.
        quiet: Do not print events as they happen.
    """
    clock = ManualClock() if fast else None
    simulator = Simulator(config, clock=clock)

    SimulationLog(simulator)
    simulator.subscribe(Operator(simulator, plan or OperatorPlan()))
    if not quiet:
        simulator.subscribe(lambda n: print(f"  {describe(n)}"))

    simulator.simulate()
    if fast:
        while not simulator.wait(0):
            clock.advance(1)
    else:
        simulator.wait()
    return simulator


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ticket counter simulation")
    parser.add_argument(
        "--counters", type=int, default=6,
        help="Number of service counters (default: 6)",
    )
    parser.add_argument(
        "--customers", type=int, default=40,
        help="Customers to serve (default: 40)",
    )
    parser.add_argument(
        "--arrival", type=int, nargs=2, default=[4, 8], metavar=("MIN", "MAX"),
        help="Seconds between arrivals (default: 4 8)",
    )
    parser.add_argument(
        "--service", type=int, nargs=2, default=[12, 20], metavar=("MIN", "MAX"),
        help="Seconds of service per customer (default: 12 20)",
    )
    parser.add_argument(
        "--reorganization", type=int, default=4,
        help="Reorganization period in seconds, 0 to disable (default: 4)",
    )
    parser.add_argument(
        "--close", type=int, default=None, metavar="COUNTER",
        help="Close this counter at the start and reopen it later",
    )
    parser.add_argument(
        "--seed", type=int, default=42,
        help="Random seed (default: 42, use -1 for random)",
    )
    parser.add_argument(
        "--fast", action="store_true",
        help="Replay on a manual clock instead of real time",
    )
    parser.add_argument(
        "--log-file", default=None,
        help="Write the simulation log to this file",
    )
    parser.add_argument(
        "--plot", default=None, metavar="PNG",
        help="Save waiting and idle time charts to this file",
    )
    parser.add_argument("--verbose", action="store_true", help="Show engine debug logs")
    args = parser.parse_args()

    if args.verbose:
        enable_console_logging(level="DEBUG")
    if args.log_file:
        enable_simulation_log_file(args.log_file)

    config = SimulatorConfig(
        queues=args.counters,
        customers=args.customers,
        min_arrival=args.arrival[0],
        max_arrival=args.arrival[1],
        min_service=args.service[0],
        max_service=args.service[1],
        reorganization=args.reorganization,
        seed=args.seed if args.seed != -1 else random.randint(0, 2**31),
    )

    print("Running ticket counter simulation...")
    for line in config.describe():
        print(f"  {line}")
    print(f"  Seed: {config.seed}")

    if args.close is not None and not 0 <= args.close < config.queues:
        parser.error(f"--close must name a counter in [0, {config.queues - 1}]")

    simulator = run_ticket_counters(config, OperatorPlan(counter=args.close), fast=args.fast)
    print()
    print(simulator.summary())

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")

        plot_statistics(simulator.statistics, args.plot)
        print(f"\nCharts saved to {args.plot}")
