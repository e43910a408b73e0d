"""Unit tests for core.logger."""

import logging

import pytest

from signal_engine.core.logger import LOGGER_NAME, module_logger_name, setup_logging


@pytest.fixture
def package_logger():
    yield
    package = logging.getLogger(LOGGER_NAME)
    for handler in list(package.handlers):
        package.removeHandler(handler)
        handler.close()
    package.setLevel(logging.NOTSET)
    logging.getLogger("signal_engine.signals.cache").setLevel(logging.NOTSET)


def test_module_logger_name():
    assert module_logger_name("signals.cache") == "signal_engine.signals.cache"
    assert module_logger_name("signal_engine.backtest") == "signal_engine.backtest"
    assert module_logger_name(LOGGER_NAME) == LOGGER_NAME


def test_console_and_file_handlers(tmp_path, package_logger):
    package = setup_logging("warning", tmp_path / "logs", "run.log")
    assert package.level == logging.WARNING
    assert len(package.handlers) == 2
    assert (tmp_path / "logs").is_dir()
    # second call replaces handlers instead of stacking them
    setup_logging("INFO")
    assert len(package.handlers) == 1
    assert package.level == logging.INFO


def test_module_levels(package_logger):
    setup_logging("WARNING", module_levels={"signals.cache": "DEBUG"})
    cache_logger = logging.getLogger("signal_engine.signals.cache")
    assert cache_logger.isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("signal_engine.backtest").isEnabledFor(logging.INFO)


def test_unknown_level_falls_back(package_logger):
    assert setup_logging("loud").level == logging.INFO
