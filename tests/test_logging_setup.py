import json
import logging

import pytest

from remoteconf.common.logging_setup import (
    JsonFormatter,
    configure_logging,
    get_service_logger,
    log_refresh_outcome,
    setup_logging,
)


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured():
    logger = get_service_logger("tests.capture")
    handler = ListHandler()
    logger.logger.addHandler(handler)
    yield logger, handler
    logger.logger.removeHandler(handler)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        name="remoteconf.config",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Config refreshed from %s",
        args=("https://config.test",),
        exc_info=None,
    )
    record.service = "config"
    record.key_count = 4

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["service"] == "config"
    assert payload["message"] == "Config refreshed from https://config.test"
    assert payload["logger"] == "remoteconf.config"
    assert payload["key_count"] == 4
    assert "timestamp" in payload


def test_setup_logging_does_not_stack_handlers():
    setup_logging("tests.handlers")
    logger = setup_logging("tests.handlers", "DEBUG", json_format=False)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert not isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.propagate is False


def test_service_logger_tags_component(captured):
    logger, handler = captured

    logger.info("hello")

    assert handler.records[-1].service == "tests.capture"


def test_configure_logging_reapplies_level():
    logger = get_service_logger("tests.configure")

    configure_logging("ERROR", "text")
    assert logger.logger.level == logging.ERROR

    configure_logging("INFO", "json")
    assert logger.logger.level == logging.INFO
    assert isinstance(logger.logger.handlers[0].formatter, JsonFormatter)


def test_log_refresh_outcome_levels(captured):
    logger, handler = captured

    log_refresh_outcome(logger, "https://config.test", success=True, key_count=3)
    log_refresh_outcome(logger, "https://config.test", success=False, error="boom")

    success, failure = handler.records[-2:]
    assert success.levelno == logging.INFO
    assert success.key_count == 3
    assert failure.levelno == logging.WARNING
    assert failure.error == "boom"
