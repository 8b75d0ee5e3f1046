"""Tests for logging setup."""

import logging

import pytest
import structlog

from keygate.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    structlog.reset_defaults()


class TestSetupLogging:
    @pytest.mark.parametrize("name", ["pymongo.command", "pymongo.connection", "pymongo.serverSelection", "pymongo.topology"])
    def test_driver_loggers_quieted(self, name):
        logging.getLogger(name).setLevel(logging.NOTSET)
        setup_logging(debug=True)
        assert logging.getLogger(name).level == logging.WARNING

    def test_json_renderer_outside_debug(self):
        setup_logging(debug=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
