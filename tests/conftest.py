"""
Shared pytest fixtures for queue-simulator tests.
"""

import logging
from pathlib import Path

import pytest

from queuesimulator.core.messages import Notification
from queuesimulator.core.timers import ManualClock


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def clock() -> ManualClock:
    """A manual clock starting at t=0."""
    return ManualClock()


class Recorder:
    """Subscriber that keeps every notification it receives."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def messages(self) -> list[str]:
        return [n.encode() for n in self.notifications]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture(autouse=True)
def reset_queuesimulator_logging():
    """Reset logging state before each test.

    Ensures tests start with a clean logging configuration:
    - Removes all handlers except NullHandler
    - Resets level to NOTSET (inherit from parent)

    This prevents logging configuration from one test affecting another.
    """
    loggers = [
        logging.getLogger("queuesimulator"),
        logging.getLogger("queuesimulator.simulation_log"),
    ]

    def _reset():
        for logger in loggers:
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
                if not isinstance(handler, logging.NullHandler):
                    handler.close()
            logger.setLevel(logging.NOTSET)
        loggers[0].addHandler(logging.NullHandler())

    _reset()
    yield
    _reset()
