"""Tests for structured logging."""

import json
import logging
import sys

from concierge.logging_config import JSONFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="concierge.worker",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Selected restaurant IDs: %s",
        args=(["a", "b"],),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_one_json_object_per_record(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "concierge.worker"
        assert data["message"] == "Selected restaurant IDs: ['a', 'b']"
        assert "timestamp" in data

    def test_context_is_included(self):
        data = json.loads(
            JSONFormatter().format(make_record(context={"Cuisine": "thai"}))
        )

        assert data["context"] == {"Cuisine": "thai"}

    def test_exception_is_included(self):
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad payload" in data["exception"]
