"""Tests for logging setup and formatters."""

import json
import logging
import sys

import pytest

from taximeter.sim_logging import (
    DevFormatter,
    JSONFormatter,
    LocationFilter,
    get_logger,
    log_trip_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("taximeter.test", logging.INFO, "x.py", 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestSetupLogging:
    def test_installs_handler(self):
        handler = setup_logging(level="DEBUG")
        root = logging.getLogger()

        assert handler in root.handlers
        assert root.level == logging.DEBUG
        assert isinstance(handler.formatter, DevFormatter)

    def test_json_output(self):
        handler = setup_logging(json_output=True, environment="test")
        assert isinstance(handler.formatter, JSONFormatter)

    def test_location_masking_optional(self):
        filters = setup_logging(mask_locations=False).filters
        assert not any(isinstance(f, LocationFilter) for f in filters)

    def test_emits_with_trip_context(self, capsys):
        setup_logging(json_output=True, environment="test")

        with log_trip_context("trip-9", trip_type="airport"):
            get_logger("taximeter.test").info("started at 19.432612, -99.133208")

        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["trip_id"] == "trip-9"
        assert payload["trip_type"] == "airport"
        assert payload["env"] == "test"
        assert payload["service"] == "taximeter"
        assert payload["message"] == "started at 19.432, -99.133"

    def test_dev_format_without_trip(self, capsys):
        setup_logging()
        get_logger("taximeter.test").info("idle")

        assert "[no trip]" in capsys.readouterr().out

    def test_dev_format_tags_trip_and_phase(self, capsys):
        setup_logging()
        with log_trip_context("0f3c2a91-aaaa-bbbb", phase="running"):
            get_logger("taximeter.test").info("moving")

        assert "[trip=0f3c2a91 running]" in capsys.readouterr().out

    def test_replaces_only_its_own_handler(self):
        foreign = logging.NullHandler()
        logging.getLogger().addHandler(foreign)

        setup_logging()
        setup_logging(json_output=True)

        handlers = logging.getLogger().handlers
        assert foreign in handlers
        assert sum(h.get_name() == "taximeter" for h in handlers) == 1


@pytest.mark.unit
class TestJSONFormatter:
    def test_includes_exception(self):
        formatter = JSONFormatter()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(exc_info=sys.exc_info())

        payload = json.loads(formatter.format(record))
        assert "RuntimeError: boom" in payload["exception"]

    def test_optional_fields_omitted(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert "trip_id" not in payload
        assert payload["level"] == "INFO"
