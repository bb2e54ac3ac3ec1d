"""Tests for logging configuration."""

import logging

from food_recognition.app_logging import LOGGER_NAME, configure_logging


def test_repeated_configuration_keeps_one_handler() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    configure_logging()
    configure_logging("debug")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_module_loggers_inherit_package_level() -> None:
    configure_logging("warning")

    child = logging.getLogger(f"{LOGGER_NAME}.services.foods")

    assert child.getEffectiveLevel() == logging.WARNING
    configure_logging()
