import json
import logging

from core.logging_config import HumanFormatter, JSONFormatter, RequestIdFilter, request_id_ctx


def _record(**extra):
    record = logging.LogRecord("api", logging.INFO, __file__, 10, "Prediction saved", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_request_id_and_context():
    token = request_id_ctx.set("req-42")
    try:
        record = _record(match_id="m1")
        RequestIdFilter().filter(record)
    finally:
        request_id_ctx.reset(token)

    entry = json.loads(JSONFormatter().format(record))
    assert entry["request_id"] == "req-42"
    assert entry["message"] == "Prediction saved"
    assert entry["context"] == {"match_id": "m1"}


def test_credentials_are_masked():
    record = _record(access_token="eyJ.secret", user_id="u1")
    RequestIdFilter().filter(record)
    line = HumanFormatter(fmt="%(message)s", color=False).format(record)
    assert "eyJ.secret" not in line
    assert "access_token=***" in line
    assert "user_id=u1" in line


def test_request_id_defaults_outside_requests():
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"
