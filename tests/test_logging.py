"""Tests for the logging setup."""

from __future__ import annotations

import json
import logging

from learnpath.logging_config import JSONFormatter, RequestIdFilter, request_id_var


def _record(**extra):
	record = logging.LogRecord("learnpath.test", logging.INFO, __file__, 1, "hello %s", ("there",), None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_filter_uses_context_request_id():
	token = request_id_var.set("abc123")
	try:
		record = _record()
		RequestIdFilter().filter(record)
	finally:
		request_id_var.reset(token)
	assert record.request_id == "abc123"


def test_filter_keeps_explicit_request_id():
	record = _record(request_id="explicit")
	RequestIdFilter().filter(record)
	assert record.request_id == "explicit"


def test_filter_defaults_to_dash():
	record = _record()
	RequestIdFilter().filter(record)
	assert record.request_id == "-"


def test_json_formatter():
	entry = json.loads(JSONFormatter().format(_record(request_id="r1")))
	assert entry["message"] == "hello there"
	assert entry["level"] == "INFO"
	assert entry["logger"] == "learnpath.test"
	assert entry["request_id"] == "r1"


def test_request_id_header_is_echoed(client):
	resp = client.get("/health", headers={"X-Request-ID": "trace-me"})
	assert resp.headers["X-Request-ID"] == "trace-me"
