"""JSON log lines and request-id propagation."""

import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi import FastAPI
from fastapi.testclient import TestClient

from duka.core.logging import JsonLogFormatter, RequestContextFilter
from duka.middlewares import RequestIdMiddleware, request_id_ctx_var


def _render(record: logging.LogRecord) -> dict:
    RequestContextFilter().filter(record)
    return json.loads(JsonLogFormatter(service="duka-test").format(record))


def test_formatter_emits_json_with_extra_fields():
    record = logging.makeLogRecord(
        {
            "name": "duka.sales",
            "levelname": "INFO",
            "levelno": logging.INFO,
            "msg": "sale.recorded",
            "extra_data": {"item_id": 3, "units_deducted": 4, "message": "ignored"},
        }
    )

    entry = _render(record)

    assert entry["message"] == "sale.recorded"
    assert entry["logger"] == "duka.sales"
    assert entry["service"] == "duka-test"
    assert entry["item_id"] == 3
    assert entry["units_deducted"] == 4
    assert entry["timestamp"].endswith("Z")
    assert "request_id" not in entry


def test_formatter_attaches_current_request_id():
    token = request_id_ctx_var.set("abc-123")
    try:
        entry = _render(logging.makeLogRecord({"msg": "item.updated"}))
    finally:
        request_id_ctx_var.reset(token)
    assert entry["request_id"] == "abc-123"


def test_formatter_includes_exception_type():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.makeLogRecord({"msg": "storage.error", "exc_info": sys.exc_info()})
    entry = _render(record)
    assert entry["error"] == "ValueError"
    assert "boom" in entry["exception"]


def _echo_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/ping")
    def ping():
        return {"request_id": request_id_ctx_var.get()}

    return app


def test_well_formed_request_id_is_reused():
    with TestClient(_echo_app()) as client:
        resp = client.get("/ping", headers={"X-Request-ID": "till-7.42"})
    assert resp.headers["X-Request-ID"] == "till-7.42"
    assert resp.json() == {"request_id": "till-7.42"}
    assert resp.headers["X-Response-Time"].endswith("ms")


def test_malformed_request_id_is_replaced():
    with TestClient(_echo_app()) as client:
        resp = client.get("/ping", headers={"X-Request-ID": "bad id with spaces"})
    assigned = resp.headers["X-Request-ID"]
    assert assigned != "bad id with spaces"
    assert len(assigned) == 32
    assert resp.json() == {"request_id": assigned}


def test_completed_requests_are_logged(caplog):
    with caplog.at_level(logging.INFO, logger="duka.request"):
        with TestClient(_echo_app()) as client:
            client.get("/ping")
    completed = [r for r in caplog.records if r.getMessage() == "request.completed"]
    assert len(completed) == 1
    assert completed[0].extra_data["path"] == "/ping"
    assert completed[0].extra_data["status"] == 200
