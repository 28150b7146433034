"""Unit tests for correlation IDs and webhook event logging."""

import logging

import pytest

from payment_monitor.utils.logging import (
    LOG_FORMAT,
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_webhook_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def no_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


def test_set_generates_id_when_missing():
    cid = set_correlation_id()

    assert cid
    assert get_correlation_id() == cid


def test_formatter_prefixes_correlation_id():
    set_correlation_id("req-1")
    record = logging.LogRecord("payment_monitor", logging.INFO, __file__, 1, "hello", None, None)

    line = StructuredFormatter(LOG_FORMAT).format(record)

    assert line.startswith("[req-1] ")
    assert line.endswith("hello")


@pytest.mark.parametrize(
    ("result", "level"),
    [
        ("processed", logging.INFO),
        ("unhandled", logging.WARNING),
        ("error", logging.ERROR),
    ],
)
def test_webhook_event_level_follows_result(caplog, result: str, level: int):
    logger = get_logger("payment_monitor.test")

    with caplog.at_level(logging.DEBUG, logger="payment_monitor.test"):
        log_webhook_event(logger, "charge.failed", "evt_1", payment_id="ch_1", result=result)

    record = caplog.records[-1]
    assert record.levelno == level
    assert record.event_id == "evt_1"
    assert "payment=ch_1" in record.getMessage()
