"""
Tests for logging setup.
"""

import json
import logging
import sys

import pytest

from utxo_vsize.logging_config import (
    ROOT_LOGGER_NAME,
    HumanReadableFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)

TEST_LOGGER = f"{ROOT_LOGGER_NAME}.tests"


@pytest.fixture(autouse=True)
def cleanup_logger():
    yield
    logger = logging.getLogger(TEST_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def make_record(msg="estimated 342 vB", level=logging.INFO, exc_info=None):
    return logging.LogRecord(TEST_LOGGER, level, __file__, 42, msg, None, exc_info, func="estimate")


class TestFormatters:
    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == TEST_LOGGER
        assert data["message"] == "estimated 342 vB"
        assert data["location"] == "estimate:42"
        assert "timestamp" in data
        assert "exception" not in data

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]

    def test_human_readable_formatter(self):
        formatted = HumanReadableFormatter().format(make_record(level=logging.WARNING))
        assert "WARNING" in formatted
        assert "estimate:42" in formatted
        assert formatted.endswith("estimated 342 vB")


class TestSetupLogging:
    def test_console_handler(self):
        logger = setup_logging(name=TEST_LOGGER, level="debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, HumanReadableFormatter)

    def test_production_mode_logs_json(self, capsys):
        logger = setup_logging(name=TEST_LOGGER, level="INFO", mode="production")
        logger.info("hello")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello"

    def test_no_duplicate_handlers(self):
        setup_logging(name=TEST_LOGGER)
        logger = setup_logging(name=TEST_LOGGER)
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        logger = setup_logging(name=TEST_LOGGER, log_dir=str(tmp_path / "logs"))
        assert len(logger.handlers) == 2
        logger.info("to file")
        for handler in logger.handlers:
            handler.flush()

        log_file = tmp_path / "logs" / f"{TEST_LOGGER}.log"
        assert log_file.exists()
        assert "to file" in log_file.read_text()

    def test_production_file_handler_writes_json(self, tmp_path):
        logger = setup_logging(name=TEST_LOGGER, mode="production", log_dir=str(tmp_path))
        assert all(isinstance(handler.formatter, JSONFormatter) for handler in logger.handlers)
        logger.warning("estimate exceeds budget")
        for handler in logger.handlers:
            handler.flush()

        lines = (tmp_path / f"{TEST_LOGGER}.log").read_text().splitlines()
        assert json.loads(lines[-1])["message"] == "estimate exceeds budget"


class TestGetLogger:
    def test_uses_config(self, monkeypatch):
        monkeypatch.setenv("UTXO_VSIZE_LOG_MODE", "production")
        monkeypatch.setenv("UTXO_VSIZE_LOG_LEVEL", "WARNING")
        monkeypatch.delenv("UTXO_VSIZE_LOG_DIR", raising=False)

        logger = get_logger(TEST_LOGGER)
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_returns_configured_logger(self):
        configured = setup_logging(name=TEST_LOGGER, level="ERROR")
        handlers = list(configured.handlers)

        logger = get_logger(TEST_LOGGER)
        assert logger is configured
        assert logger.handlers == handlers
        assert logger.level == logging.ERROR
