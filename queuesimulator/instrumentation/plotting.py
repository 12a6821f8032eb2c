"""Matplotlib charts of run statistics."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from matplotlib.figure import Figure

    from queuesimulator.instrumentation.statistics import Statistics


def plot_statistics(
    statistics: Statistics,
    path: str | Path | None = None,
    title: str = "Queue Simulation Statistics",
) -> Figure:
    """Draw waiting times and per-queue idle time side by side.

    Only committed idle time is plotted; finish or stop the run (or commit
    the queues yourself) for complete figures.
    Draws with the active matplotlib backend; select a non-interactive one
    such as ``matplotlib.use("Agg")`` for headless runs.

    Args:
        statistics: The run's statistics.
        path: If given, the figure is saved there (parent directories are
            created) and closed.
        title: Figure title.

    Returns:
        The matplotlib Figure.
    """
    import matplotlib.pyplot as plt

    waits = statistics.to_dataframe()
    idle = statistics.idle_dataframe()

    fig, (ax_wait, ax_idle) = plt.subplots(1, 2, figsize=(12, 5))
    fig.suptitle(title)

    if waits.empty:
        ax_wait.text(0.5, 0.5, "No customers processed",
                     ha="center", va="center", transform=ax_wait.transAxes)
    else:
        ax_wait.hist(waits["waiting_time"], bins=min(20, max(1, len(waits))), edgecolor="black")
        ax_wait.axvline(waits["waiting_time"].mean(), color="red", linestyle="--",
                        label=f"mean {waits['waiting_time'].mean():.2f}s")
        ax_wait.legend()
    ax_wait.set_xlabel("Waiting time (s)")
    ax_wait.set_ylabel("Customers")
    ax_wait.set_title("Waiting Times")

    ax_idle.bar(idle["queue"].astype(str), idle["idle_time"])
    ax_idle.set_xlabel("Queue")
    ax_idle.set_ylabel("Idle time (s)")
    ax_idle.set_title("Open-and-Empty Time per Queue")

    fig.tight_layout()

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150)
        plt.close(fig)
    return fig
