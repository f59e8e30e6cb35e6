"""Tests for logging configuration."""

import logging

from calorie_bank.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("calorie_bank")
    logger.handlers.clear()

    configure_logging(logging.DEBUG)
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.INFO
    assert not logger.propagate
