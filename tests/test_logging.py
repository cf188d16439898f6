import json
import logging

from scanner_api.core.logging import JsonFormatter, RequestContextFilter, correlation_id_var, user_id_var


def _record(msg="scan accepted %s", args=("001A",)):
    return logging.LogRecord("scanner_api.services.skid_build", logging.INFO, __file__, 10, msg, args, None)


def test_context_filter_uses_placeholders_outside_requests():
    record = _record()
    assert RequestContextFilter().filter(record) is True
    assert record.correlation_id == "-"
    assert record.user_id == "-"


def test_json_formatter_includes_request_context():
    cid_token = correlation_id_var.set("abc-123")
    uid_token = user_id_var.set("operator1")
    try:
        record = _record()
        RequestContextFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
    finally:
        correlation_id_var.reset(cid_token)
        user_id_var.reset(uid_token)

    assert payload["message"] == "scan accepted 001A"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "scanner_api.services.skid_build"
    assert payload["correlation_id"] == "abc-123"
    assert payload["user_id"] == "operator1"
    assert "exception" not in payload
