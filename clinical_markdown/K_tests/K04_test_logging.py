# clinical_markdown/K_tests/K04_test_logging.py
"""
Tests for A_core.A00_logging module.

Tests namespace handling, handler setup, LogContext and the timed decorator.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from A_core.A00_logging import (
    ROOT_LOGGER_NAME,
    ColoredFormatter,
    LogContext,
    configure_logging,
    get_log_file,
    get_logger,
    timed,
)


class TestGetLogger:
    """Tests for the project logger namespace."""

    def test_prefixes_namespace(self):
        assert get_logger("H_pipeline.H01").name == "clinical_markdown.H_pipeline.H01"

    def test_keeps_existing_prefix(self):
        assert get_logger("clinical_markdown.cli").name == "clinical_markdown.cli"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_reconfigure_replaces_handlers(self):
        configure_logging(log_level=logging.DEBUG)
        configure_logging(log_level=logging.WARNING)
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.WARNING

    def test_console_disabled(self):
        configure_logging(enable_console_logging=False)
        assert logging.getLogger(ROOT_LOGGER_NAME).handlers == []

    def test_file_logging(self, tmp_path: Path):
        configure_logging(
            log_dir=tmp_path,
            log_level=logging.INFO,
            run_id="unit",
            enable_file_logging=True,
            enable_console_logging=False,
        )
        get_logger("test").info("written to file")
        log_file = get_log_file()
        assert log_file == tmp_path / "clinical_markdown_unit.log"
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_record_not_mutated(self):
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")
        formatter.use_colors = True
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        output = formatter.format(record)
        assert "\033[32m" in output
        assert record.levelname == "INFO"


class TestLogContext:
    """Tests for LogContext."""

    def test_logs_start_and_completion(self, capture_logs):
        logger = get_logger("test.context")
        with LogContext(logger, "parse sample.md"):
            pass
        messages = [r.getMessage() for r in capture_logs.records]
        assert "Starting: parse sample.md" in messages
        assert any(m.startswith("Completed: parse sample.md") for m in messages)

    def test_logs_failure_and_reraises(self, capture_logs):
        logger = get_logger("test.context")
        with pytest.raises(ValueError):
            with LogContext(logger, "parse broken.md"):
                raise ValueError("bad input")
        failures = [r for r in capture_logs.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert "ValueError: bad input" in failures[0].getMessage()


class TestTimed:
    """Tests for the timed decorator."""

    def test_returns_result_and_logs(self, capture_logs):
        @timed(get_logger("test.timed"))
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert any("add completed in" in r.getMessage() for r in capture_logs.records)

    def test_preserves_name(self):
        @timed()
        def segment():
            return None

        assert segment.__name__ == "segment"
