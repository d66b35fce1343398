"""Unit tests for filedb.engine.logging — diagnostics logger setup."""

import logging
import pytest

from filedb.engine.config import LoggingConfig
from filedb.engine.logging import ROOT_LOGGER, configure_logging, reset_logging


@pytest.fixture(autouse=True)
def _reset():
    reset_logging()
    yield
    reset_logging()


class TestConfigureLogging:
    def test_sets_level(self):
        root = configure_logging(LoggingConfig(level="WARNING"))
        assert root.name == ROOT_LOGGER
        assert root.level == logging.WARNING

    def test_defaults(self):
        root = configure_logging()
        assert root.level == logging.INFO

    def test_idempotent(self):
        configure_logging()
        configure_logging(LoggingConfig(level="DEBUG"))
        root = logging.getLogger(ROOT_LOGGER)
        stream_handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) == 1
        assert root.level == logging.DEBUG

    def test_child_loggers_propagate(self, caplog):
        configure_logging(LoggingConfig(level="INFO"))
        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
            logging.getLogger("filedb.documents.service").info("hello from the store")
        assert "hello from the store" in caplog.text

    def test_reset_removes_handler(self):
        configure_logging()
        reset_logging()
        root = logging.getLogger(ROOT_LOGGER)
        assert root.handlers == []
