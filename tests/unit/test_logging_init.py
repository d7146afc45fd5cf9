from __future__ import annotations

import logging
from io import StringIO
from unittest.mock import patch

import sheetgrid.logging.init
from sheetgrid.logging.init import (
    APP_LOGGER_NAME,
    LabeledFormatter,
    enable_debug,
    get_logger,
    log_summary,
    setup_logging,
)


def _capture(logger: logging.Logger) -> StringIO:
    captured_output = StringIO()
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(captured_output)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    return captured_output


def test_setup_logging_creates_logger_with_labeled_formatter():
    """setup_logging configures the application logger with one stream handler."""
    logger = setup_logging()

    assert logger.name == "sheetgrid"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.propagate is False

    handler = logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert isinstance(handler.formatter, LabeledFormatter)


def test_logging_labeled_prefixes():
    """Output lines carry INFO|WARN|ERROR|SUMMARY labels."""
    logger = setup_logging()
    captured_output = _capture(logger)

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(25, "Test summary message")

    lines = captured_output.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_engine_module_loggers_share_the_handler():
    """Module loggers below ``sheetgrid`` render through the app handler."""
    logger = setup_logging()
    captured_output = _capture(logger)

    logging.getLogger("sheetgrid.text.decoder").warning("decode: degraded")

    assert captured_output.getvalue() == "WARN decode: degraded\n"


def test_get_logger_returns_configured_logger():
    setup_logger = setup_logging()
    logger = get_logger()
    assert logger is setup_logger
    assert logger.name == APP_LOGGER_NAME


def test_setup_logging_idempotent():
    logger1 = setup_logging()
    logger2 = setup_logging()
    assert logger1 is logger2
    assert len(logger1.handlers) == 1


def test_logging_when_stdout_is_not_tty():
    with patch("sys.stdout.isatty", return_value=False):
        logger = setup_logging()
        logger.info("Test message when not TTY")
        assert logger.level == logging.INFO


def test_enable_debug_lowers_levels():
    logger = setup_logging()
    captured_output = _capture(logger)
    enable_debug()
    logging.getLogger("sheetgrid.engine.header").debug("header row 0")
    assert logger.level == logging.DEBUG
    assert "DEBUG header row 0" in captured_output.getvalue()


def test_summary_level_logging():
    logger = setup_logging()
    assert logging.getLevelName(25) == "SUMMARY"
    with patch.object(logger, "_log") as mock_log:
        logger.log(25, "files=1/1 success=1 failed=0 rows=3 columns=9 elapsed_sec=1.5 throughput_rps=2")
        mock_log.assert_called_once()


def test_log_summary_convenience_function():
    sheetgrid.logging.init.reset_logging()
    logger = setup_logging()
    captured_output = _capture(logger)

    log_summary("files=2/2 success=2 failed=0 rows=150 columns=4 elapsed_sec=2.5 throughput_rps=60")

    lines = captured_output.getvalue().strip().split("\n")
    assert lines == ["SUMMARY files=2/2 success=2 failed=0 rows=150 columns=4 elapsed_sec=2.5 throughput_rps=60"]
