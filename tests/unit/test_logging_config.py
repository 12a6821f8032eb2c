"""Unit tests for queuesimulator logging configuration."""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from unittest import mock

import queuesimulator
from queuesimulator.logging_config import (
    LOGGER_NAME,
    SIMULATION_LOGGER_NAME,
    JsonFormatter,
    _clear_handlers,
    _get_level,
    _get_logger,
)


def _flush(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()


class TestSilentByDefault:
    """Tests that the library is silent by default."""

    def test_logger_has_null_handler(self):
        """The package logger should carry a NullHandler."""
        logger = logging.getLogger(LOGGER_NAME)
        null_handlers = [h for h in logger.handlers if isinstance(h, logging.NullHandler)]
        assert len(null_handlers) >= 1

    def test_engine_records_are_not_printed(self, capfd):
        """Warnings from engine modules produce no output without configuration."""
        logging.getLogger(f"{LOGGER_NAME}.core.simulator").info("quiet")

        captured = capfd.readouterr()
        assert "quiet" not in captured.out
        assert "quiet" not in captured.err


class TestEnableConsoleLogging:
    """Tests for enable_console_logging function."""

    def test_adds_stream_handler(self):
        """Should add a StreamHandler to the logger."""
        queuesimulator.enable_console_logging()

        stream_handlers = [h for h in _get_logger().handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) >= 1

    def test_sets_level(self):
        """Should set the logger level."""
        queuesimulator.enable_console_logging(level="DEBUG")

        assert _get_logger().level == logging.DEBUG

    def test_outputs_to_stderr(self, capfd):
        """Should output log messages to stderr."""
        queuesimulator.enable_console_logging(level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("test message")

        captured = capfd.readouterr()
        assert "test message" in captured.err

    def test_custom_format(self, capfd):
        """Should respect custom format string."""
        queuesimulator.enable_console_logging(level="INFO", format="[CUSTOM] %(message)s")

        logging.getLogger(f"{LOGGER_NAME}.test").info("hello")

        captured = capfd.readouterr()
        assert "[CUSTOM] hello" in captured.err


class TestEnableFileLogging:
    """Tests for enable_file_logging function."""

    def test_creates_parent_directories(self, tmp_path):
        """Should create parent directories if they don't exist."""
        log_file = tmp_path / "subdir" / "nested" / "engine.log"
        queuesimulator.enable_file_logging(log_file)

        assert log_file.parent.exists()

    def test_writes_to_file(self, tmp_path):
        """Should write log messages to file."""
        log_file = tmp_path / "engine.log"
        queuesimulator.enable_file_logging(log_file, level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("file test message")
        _flush(_get_logger())

        assert "file test message" in log_file.read_text()

    def test_respects_max_bytes(self, tmp_path):
        """Should create handler with specified max_bytes."""
        handler = queuesimulator.enable_file_logging(
            tmp_path / "engine.log", max_bytes=1024, backup_count=3
        )

        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 3


class TestEnableJsonLogging:
    """Tests for enable_json_logging function."""

    def test_outputs_valid_json(self, capfd):
        """Should output one JSON object per record."""
        queuesimulator.enable_json_logging(level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("json test")

        data = json.loads(capfd.readouterr().err.strip())
        assert data["message"] == "json test"
        assert data["level"] == "INFO"
        assert data["logger"] == f"{LOGGER_NAME}.test"
        assert "timestamp" in data

    def test_json_includes_exception(self, capfd):
        """Should include exception info in JSON."""
        queuesimulator.enable_json_logging(level="INFO")

        logger = logging.getLogger(f"{LOGGER_NAME}.test")
        try:
            raise ValueError("test error")
        except ValueError:
            logger.exception("caught error")

        data = json.loads(capfd.readouterr().err.strip())
        assert "ValueError" in data["exception"]


class TestEnableSimulationLogFile:
    """Tests for enable_simulation_log_file function."""

    def test_writes_simulation_records_only(self, tmp_path):
        """Narrative records reach the file; engine diagnostics do not."""
        log_file = tmp_path / "simulator.log"
        queuesimulator.enable_simulation_log_file(log_file)
        queuesimulator.enable_console_logging(level="DEBUG")

        sim_logger = logging.getLogger(SIMULATION_LOGGER_NAME)
        sim_logger.info("Simulation Started")
        logging.getLogger(f"{LOGGER_NAME}.core.simulator").info("engine detail")
        _flush(sim_logger)

        content = log_file.read_text()
        assert "Simulation Started" in content
        assert "engine detail" not in content

    def test_uses_time_prefixed_format(self, tmp_path):
        """Lines look like '[HH:MM:SS] message'."""
        log_file = tmp_path / "simulator.log"
        queuesimulator.enable_simulation_log_file(log_file)

        sim_logger = logging.getLogger(SIMULATION_LOGGER_NAME)
        sim_logger.info("Queue 2 was opened.")
        _flush(sim_logger)

        line = log_file.read_text().strip()
        assert line.startswith("[")
        assert line.endswith("] Queue 2 was opened.")
        assert len(line.split("]")[0]) == len("[00:00:00")


class TestConfigureFromEnv:
    """Tests for configure_from_env function."""

    def test_respects_qs_logging_env(self):
        """Should configure level from QS_LOGGING env var."""
        with mock.patch.dict(os.environ, {"QS_LOGGING": "DEBUG"}, clear=False):
            queuesimulator.configure_from_env()

        assert _get_logger().level == logging.DEBUG

    def test_respects_qs_log_file_env(self, tmp_path):
        """Should configure file logging from QS_LOG_FILE env var."""
        log_file = tmp_path / "env_test.log"
        with mock.patch.dict(
            os.environ,
            {"QS_LOGGING": "INFO", "QS_LOG_FILE": str(log_file)},
            clear=False,
        ):
            queuesimulator.configure_from_env()

        rotating_handlers = [h for h in _get_logger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(rotating_handlers) == 1

    def test_json_file_from_env(self, tmp_path):
        """QS_LOG_FILE with QS_LOG_JSON=1 writes JSON lines to the file."""
        log_file = tmp_path / "env_test.json"
        with mock.patch.dict(
            os.environ,
            {"QS_LOG_FILE": str(log_file), "QS_LOG_JSON": "1"},
            clear=False,
        ):
            queuesimulator.configure_from_env()

        logging.getLogger(f"{LOGGER_NAME}.test").info("json file test")
        _flush(_get_logger())

        data = json.loads(log_file.read_text().strip())
        assert data["message"] == "json file test"

    def test_respects_qs_log_json_env(self, capfd):
        """Should enable JSON logging when QS_LOG_JSON=1."""
        with mock.patch.dict(os.environ, {"QS_LOGGING": "INFO", "QS_LOG_JSON": "1"}, clear=False):
            queuesimulator.configure_from_env()

        logging.getLogger(f"{LOGGER_NAME}.test").info("json env test")

        data = json.loads(capfd.readouterr().err.strip())
        assert data["message"] == "json env test"

    def test_does_nothing_when_no_env_vars(self):
        """Should not add handlers when no env vars are set."""
        initial_count = len(_get_logger().handlers)

        with mock.patch.dict(os.environ, {}, clear=True):
            queuesimulator.configure_from_env()

        assert len(_get_logger().handlers) == initial_count


class TestLevels:
    """Tests for set_level and set_module_level."""

    def test_sets_level_by_string(self):
        queuesimulator.set_level("WARNING")
        assert _get_logger().level == logging.WARNING

    def test_sets_level_by_int(self):
        queuesimulator.set_level(logging.ERROR)
        assert _get_logger().level == logging.ERROR

    def test_sets_submodule_level(self):
        queuesimulator.set_module_level("core.timers", "DEBUG")

        assert logging.getLogger(f"{LOGGER_NAME}.core.timers").level == logging.DEBUG
        logging.getLogger(f"{LOGGER_NAME}.core.timers").setLevel(logging.NOTSET)

    def test_submodule_filters_more_strictly(self, capfd):
        """A submodule can be quieter than the package logger."""
        queuesimulator.enable_console_logging(level="DEBUG")
        queuesimulator.set_module_level("core.timers", "CRITICAL")

        logging.getLogger(f"{LOGGER_NAME}.core.timers").warning("quiet warning")
        logging.getLogger(f"{LOGGER_NAME}.core.simulator").debug("noisy debug")

        captured = capfd.readouterr()
        assert "quiet warning" not in captured.err
        assert "noisy debug" in captured.err
        logging.getLogger(f"{LOGGER_NAME}.core.timers").setLevel(logging.NOTSET)


class TestDisableLogging:
    """Tests for disable_logging function."""

    def test_silences_all_output(self, capfd):
        queuesimulator.enable_console_logging(level="DEBUG")
        queuesimulator.disable_logging()

        logging.getLogger(f"{LOGGER_NAME}.test").critical("this should not appear")

        assert "this should not appear" not in capfd.readouterr().err

    def test_removes_non_null_handlers(self, tmp_path):
        queuesimulator.enable_console_logging()
        queuesimulator.enable_file_logging(tmp_path / "engine.log")

        queuesimulator.disable_logging()

        non_null = [h for h in _get_logger().handlers if not isinstance(h, logging.NullHandler)]
        assert non_null == []


class TestHelperFunctions:
    """Tests for internal helper functions."""

    def test_get_level_from_string(self):
        assert _get_level("DEBUG") == logging.DEBUG
        assert _get_level("info") == logging.INFO

    def test_get_level_from_int(self):
        assert _get_level(logging.ERROR) == logging.ERROR

    def test_get_level_default_for_invalid(self):
        """Unknown names fall back to INFO."""
        assert _get_level("INVALID") == logging.INFO

    def test_clear_handlers_keeps_null_handler(self):
        queuesimulator.enable_console_logging()
        _clear_handlers()

        handlers = _get_logger().handlers
        assert all(isinstance(h, logging.NullHandler) for h in handlers)

    def test_json_formatter_basic_record(self):
        record = logging.LogRecord(
            name="test.logger",
            level=logging.INFO,
            pathname="test.py",
            lineno=1,
            msg="customer %d left",
            args=(3,),
            exc_info=None,
        )

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "customer 3 left"
        assert data["logger"] == "test.logger"
        assert "exception" not in data
