"""Tests for structured logging setup."""

from __future__ import annotations

import io
import json
import logging

import structlog

from signal_core.logging import bind_cycle_context, clear_cycle_context, get_logger, setup_logging


class TestSetupLogging:
    def test_json_format(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_json")
        logger.info("signal_admitted", symbol="BTCUSDT")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["event"] == "signal_admitted"
        assert line["symbol"] == "BTCUSDT"
        assert line["level"] == "info"
        assert "timestamp" in line

    def test_console_format(self, capsys):
        setup_logging(level="INFO", log_format="console")
        logger = get_logger("test_console")
        logger.info("hello console", symbol="ETHUSDT")

        captured = capsys.readouterr()
        assert "hello console" in captured.err
        assert "ETHUSDT" in captured.err

    def test_log_level_filtering(self, capsys):
        setup_logging(level="WARNING", log_format="json")
        logger = get_logger("test_level")
        logger.info("should be hidden")
        logger.warning("should appear")

        captured = capsys.readouterr()
        assert "should be hidden" not in captured.err
        assert "should appear" in captured.err

    def test_custom_stream(self):
        stream = io.StringIO()
        setup_logging(level="INFO", log_format="json", stream=stream)
        get_logger("test_stream").info("to_stream")
        assert json.loads(stream.getvalue().strip())["event"] == "to_stream"

    def test_get_logger_with_context(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_ctx", symbol="SOLUSDT", signal_id="abc")
        logger.info("context test")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["symbol"] == "SOLUSDT"
        assert line["signal_id"] == "abc"

    def test_contextvars_binding(self, capsys):
        setup_logging(level="INFO", log_format="json")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id="abc123")

        logger = get_logger("test_ctxvars")
        logger.info("with context var")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["request_id"] == "abc123"

        structlog.contextvars.clear_contextvars()

    def test_cycle_context(self, capsys):
        setup_logging(level="INFO", log_format="json")
        structlog.contextvars.clear_contextvars()
        logger = get_logger("test_cycle")

        bind_cycle_context(7)
        logger.info("inside")
        clear_cycle_context()
        logger.info("outside")

        inside, outside = (json.loads(l) for l in capsys.readouterr().err.strip().splitlines())
        assert inside["cycle"] == 7
        assert "cycle" not in outside

    def test_http_loggers_quieted(self):
        setup_logging(level="DEBUG", log_format="json")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_stdlib_records_rendered(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logging.getLogger("plain").warning("stdlib message")

        line = json.loads(capsys.readouterr().err.strip())
        assert line["event"] == "stdlib message"
        assert line["level"] == "warning"
