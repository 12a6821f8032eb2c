"""Logging configuration helpers for queuesimulator.

queuesimulator is silent by default (NullHandler on the package logger).
Call one of the helpers below to see what the engine is doing.

Example usage:
    import queuesimulator

    # Engine diagnostics on stderr
    queuesimulator.enable_console_logging(level="DEBUG")

    # Rotating diagnostic log file
    queuesimulator.enable_file_logging("logs/engine.log", max_bytes=10_000_000)

    # One JSON object per record, for log shippers
    queuesimulator.enable_json_logging()

    # Human-readable simulation log (parameters, events, statistics)
    queuesimulator.enable_simulation_log_file("simulator.log")

    # Configure from environment variables
    queuesimulator.configure_from_env()

Environment variables:
    QS_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    QS_LOG_FILE: Path to log file (enables rotating file logging)
    QS_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "enable_simulation_log_file",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Simulation log lines look like "[9:41:07] Customer 3 has arrived at Queue 1"
SIMULATION_LOG_FORMAT = "[%(asctime)s] %(message)s"
SIMULATION_LOG_DATE_FORMAT = "%H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "queuesimulator"
SIMULATION_LOGGER_NAME = f"{LOGGER_NAME}.simulation_log"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "queuesimulator.core.simulator", "message": "Simulation started: ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def _get_level(level: str | int) -> int:
    """Convert a level name or number to a logging level constant."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Remove and close every non-null handler on the package logger."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _rotating_handler(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Send queuesimulator logs to stderr.

    Returns:
        The created StreamHandler.
    """
    logger = _get_logger()
    logger.setLevel(_get_level(level))

    handler = logging.StreamHandler()
    handler.setLevel(_get_level(level))
    handler.setFormatter(logging.Formatter(format, date_format))

    logger.addHandler(handler)
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Write queuesimulator logs to a size-rotated file.

    Args:
        path: Log file. Parent directories are created.
        level: Minimum level to record.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.

    Returns:
        The created RotatingFileHandler.
    """
    logger = _get_logger()
    logger.setLevel(_get_level(level))

    handler = _rotating_handler(path, max_bytes, backup_count)
    handler.setLevel(_get_level(level))
    handler.setFormatter(logging.Formatter(format, date_format))

    logger.addHandler(handler)
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Send queuesimulator logs to stderr as JSON lines.

    Returns:
        The created StreamHandler with JsonFormatter.
    """
    logger = _get_logger()
    logger.setLevel(_get_level(level))

    handler = logging.StreamHandler()
    handler.setLevel(_get_level(level))
    handler.setFormatter(JsonFormatter())

    logger.addHandler(handler)
    return handler


def enable_simulation_log_file(
    path: str | Path,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """Write the human-readable simulation log to a file.

    Only records of the ``queuesimulator.simulation_log`` logger (written by
    SimulationLog) reach this file; engine diagnostics do not.

    Returns:
        The created RotatingFileHandler.
    """
    logger = logging.getLogger(SIMULATION_LOGGER_NAME)
    logger.setLevel(logging.INFO)

    handler = _rotating_handler(path, max_bytes, backup_count)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(SIMULATION_LOG_FORMAT, SIMULATION_LOG_DATE_FORMAT))

    logger.addHandler(handler)
    return handler


def configure_from_env() -> None:
    """Configure logging from QS_LOGGING, QS_LOG_FILE and QS_LOG_JSON.

    Does nothing when neither QS_LOGGING nor QS_LOG_FILE is set.
    """
    level = os.environ.get("QS_LOGGING", "").upper()
    log_file = os.environ.get("QS_LOG_FILE", "")
    use_json = os.environ.get("QS_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"

    if log_file:
        handler = enable_file_logging(log_file, level=level)
        if use_json:
            handler.setFormatter(JsonFormatter())
    elif use_json:
        enable_json_logging(level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the level of the package logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the level of one submodule logger.

    Example:
        >>> queuesimulator.set_module_level("core.timers", "WARNING")
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Silence queuesimulator completely."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
