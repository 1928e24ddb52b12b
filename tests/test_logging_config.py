"""Tests for ppm/middleware/logging_config.py formatters."""

import json
import logging

from ppm.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(**extra):
    record = logging.LogRecord("ppm.test", logging.INFO, __file__, 1, "GET %s", ("/x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_json_carries_request_fields(self):
        line = JSONFormatter().format(_record(organization_id=7, status=200, request_id="abc"))
        entry = json.loads(line)
        assert entry["message"] == "GET /x"
        assert entry["organization_id"] == 7
        assert entry["status"] == 200
        assert "user_id" not in entry

    def test_readable_shows_tenant(self):
        line = ReadableFormatter().format(_record(organization_id=7))
        assert "[org=7]" in line
        assert line.endswith("ppm.test [org=7]: GET /x")
