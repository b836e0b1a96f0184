"""Tests for logging helpers."""

import logging

import pytest

from printshop.logging_utils import LOGGER_NAME, configure_logging, get_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class TestGetLogger:
    def test_namespaced(self):
        assert get_logger("cart").name == "printshop.cart"
        assert get_logger("printshop.orders").name == "printshop.orders"
        assert get_logger("printshop").name == "printshop"


class TestConfigureLogging:
    def test_handlers_do_not_stack(self, clean_logger):
        configure_logging("DEBUG")
        configure_logging("WARNING")

        assert len(clean_logger.handlers) == 1
        assert clean_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, clean_logger):
        configure_logging("chatty")

        assert clean_logger.level == logging.INFO

    def test_writes_to_stderr(self, clean_logger, capsys):
        configure_logging("INFO")

        get_logger("cart").info("hello")

        assert "printshop.cart: hello" in capsys.readouterr().err
