import json
import logging

from planbook.utils.logging import (
    JsonFormatter,
    RequestContextFilter,
    bind_request_id,
    current_request_id,
    reset_request_id,
)


def _record(level=logging.INFO, msg="version_locked id=%s", args=(3,), **extra):
    record = logging.LogRecord("planbook.services.version_service", level, __file__, 42, msg, args, None)
    record.__dict__.update(extra)
    return record


def _emit(record):
    RequestContextFilter().filter(record)
    return json.loads(JsonFormatter().format(record))


def test_records_carry_the_bound_request_id():
    token = bind_request_id("req-42")
    try:
        payload = _emit(_record())
    finally:
        reset_request_id(token)

    assert payload["request_id"] == "req-42"
    assert payload["message"] == "version_locked id=3"
    assert payload["logger"] == "planbook.services.version_service"
    assert current_request_id() == "-"


def test_outside_a_request_the_id_is_a_dash():
    assert _emit(_record())["request_id"] == "-"


def test_explicit_request_id_is_not_overwritten():
    token = bind_request_id("req-outer")
    try:
        payload = _emit(_record(request_id="req-explicit"))
    finally:
        reset_request_id(token)
    assert payload["request_id"] == "req-explicit"


def test_warnings_include_location_and_extra_fields():
    payload = _emit(_record(level=logging.WARNING, msg="bulk_upsert_conflict", args=(), version_id=7))
    assert payload["level"] == "WARNING"
    assert payload["version_id"] == 7
    assert payload["location"].endswith(":42")
    assert "args" not in payload
