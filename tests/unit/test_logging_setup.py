"""Tests for structlog configuration."""

import json
import logging

import pytest
import structlog

from taskrecon.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_output(capsys):
    configure_logging("DEBUG", json_output=True)

    structlog.get_logger("taskrecon.test").info("rescan_started", meeting_id="m1")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "rescan_started"
    assert event["meeting_id"] == "m1"
    assert event["level"] == "info"
    assert event["logger"] == "taskrecon.test"


def test_reconfiguring_does_not_duplicate_handler():
    configure_logging()
    configure_logging("WARNING")

    root = logging.getLogger()
    assert [h.name for h in root.handlers].count("taskrecon_stream") == 1
    assert root.level == logging.WARNING
