"""Tests for logging configuration."""

import json
import logging

from loguru import logger

from fixturedb.core.logging import InterceptHandler, configure_logging, intercept_standard_logging


class TestLogging:
    """Test loguru sinks and standard library interception."""

    def test_file_sink(self, temp_dir):
        log_file = temp_dir / "logs" / "fixturedb.log"

        configure_logging(level="DEBUG", log_file=str(log_file), serialize=True)
        logger.debug("Loading dataset definition shop")
        logger.complete()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert records[-1]["record"]["message"] == "Loading dataset definition shop"

    def test_configured_once(self, temp_dir):
        configure_logging(log_file=str(temp_dir / "first.log"))
        configure_logging(log_file=str(temp_dir / "second.log"))

        assert not (temp_dir / "second.log").exists()

    def test_intercept_named_loggers(self):
        messages = []
        sink_id = logger.add(messages.append, format="{message}")
        std_logger = logging.getLogger("fixturedb.tests.intercepted")
        std_logger.setLevel(logging.INFO)

        try:
            intercept_standard_logging(("fixturedb.tests.intercepted",))
            intercept_standard_logging(("fixturedb.tests.intercepted",))
            std_logger.info("SELECT 1")
        finally:
            logger.remove(sink_id)
            for handler in list(std_logger.handlers):
                std_logger.removeHandler(handler)
            std_logger.propagate = True

        assert [message.strip() for message in messages] == ["SELECT 1"]
        assert not any(isinstance(h, InterceptHandler) for h in logging.getLogger().handlers)
