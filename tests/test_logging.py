"""Tests for the logging setup helpers."""

import logging

import pytest

from pyfilehub.logging import setup as logging_setup
from pyfilehub.logging.log_manager import LogManager


@pytest.fixture
def fresh_logging():
    """Run a test with logging unconfigured, restoring the module's state after."""
    saved = (logging_setup._logging_configured,
             logging_setup._log_manager, LogManager._instance)
    logging_setup.reset_logging()
    yield
    (logging_setup._logging_configured,
     logging_setup._log_manager, LogManager._instance) = saved


def test_setup_logging_writes_to_configured_file(fresh_logging, tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": "%(levelname)s %(name)s %(message)s"}},
        "handlers": {
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_file),
                "formatter": "plain",
                "level": "DEBUG",
            }
        },
        "loggers": {
            "pyfilehub.test_logging": {"level": "DEBUG", "handlers": ["file"]},
        },
    }

    logging_setup.setup_logging(config)
    assert logging_setup.is_logging_configured()

    logger = logging_setup.get_logger("pyfilehub.test_logging")
    logger.debug("stored a file")
    for handler in logger.handlers:
        handler.flush()

    assert "DEBUG pyfilehub.test_logging stored a file" in log_file.read_text()


def test_setup_logging_is_idempotent(fresh_logging):
    logging_setup.setup_logging({})
    manager = logging_setup._log_manager
    logging_setup.setup_logging({"handlers": {"bogus": {}}})
    assert logging_setup._log_manager is manager


def test_invalid_config_falls_back(fresh_logging):
    """A broken dictConfig does not take the application down."""
    manager = LogManager({"handlers": {"broken": {"class": "no.such.Handler"}}})
    assert isinstance(manager.get_logger("x"), logging.Logger)


def test_get_logger_before_setup(fresh_logging):
    logger = logging_setup.get_logger("pyfilehub.early")
    assert logger.name == "pyfilehub.early"
