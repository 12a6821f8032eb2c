"""Run statistics, summaries and charts."""

from queuesimulator.instrumentation.statistics import CompletedRecord, Statistics
from queuesimulator.instrumentation.summary import SimulationSummary

__all__ = [
    "CompletedRecord",
    "SimulationSummary",
    "Statistics",
]
