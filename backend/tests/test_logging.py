"""
Unit tests for the JSON log formatter and request id propagation.
"""
import json
import logging
import uuid

import pytest

from partner_onboarding.utils.logging import JsonFormatter, RequestContextFilter, request_id_var


def _record(**extra):
    record = logging.LogRecord("partner_onboarding.test", logging.INFO, __file__, 1, "moved %s", ("kyc",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
def test_formatter_lifts_known_extras():
    approval_id = uuid.uuid4()
    line = JsonFormatter().format(_record(partner_id="p-1", approval_id=approval_id, unrelated="x"))
    payload = json.loads(line)
    assert payload["message"] == "moved kyc"
    assert payload["level"] == "INFO"
    assert payload["partner_id"] == "p-1"
    assert payload["approval_id"] == str(approval_id)
    assert "unrelated" not in payload
    assert "request_id" not in payload


@pytest.mark.unit
def test_filter_attaches_current_request_id():
    token = request_id_var.set("req-42")
    try:
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert json.loads(JsonFormatter().format(record))["request_id"] == "req-42"

        explicit = _record(request_id="req-explicit")
        RequestContextFilter().filter(explicit)
        assert explicit.request_id == "req-explicit"
    finally:
        request_id_var.reset(token)


@pytest.mark.unit
def test_filter_without_request_context():
    record = _record()
    RequestContextFilter().filter(record)
    assert not hasattr(record, "request_id")
