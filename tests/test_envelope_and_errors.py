import sys
from contextlib import contextmanager
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fastapi import FastAPI
from fastapi.testclient import TestClient

from cafe_api.app import error_handlers
from cafe_api.app.obs import errors as obs_errors
from cafe_api.app.domain.errors import CompensationFailed, TableOccupied
from cafe_api.app.middlewares import LanguageMiddleware, RequestIdMiddleware
from cafe_api.app.utils.responses import err, ok
from config import Environment, Settings


def _make_app(env=Environment.DEVELOPMENT):
    app = FastAPI()
    app.state.settings = Settings(env=env)
    app.add_middleware(LanguageMiddleware)
    app.add_middleware(RequestIdMiddleware)
    error_handlers.install(app)

    @app.get("/conflict")
    async def conflict():
        raise TableOccupied(table="12")

    @app.get("/orphan")
    async def orphan():
        raise CompensationFailed(order_id="o-1")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


def test_ok_and_err_envelopes():
    assert ok({"a": 1}) == {"ok": True, "data": {"a": 1}}
    body = err("X", "msg", {"k": "v"}, "try again")
    assert body["ok"] is False
    assert body["error"] == {"code": "X", "message": "msg", "hint": "try again", "details": {"k": "v"}}


def test_not_found_returns_err():
    client = TestClient(_make_app())
    resp = client.get("/missing")
    assert resp.status_code == 404
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == 404


def test_conflict_is_409_with_localized_message():
    client = TestClient(_make_app())
    resp = client.get("/conflict", headers={"X-Request-ID": "rid-1"})
    assert resp.status_code == 409
    body = resp.json()
    assert body["request_id"] == "rid-1"
    assert body["error"]["message"] == "Meja 12 sedang digunakan"
    assert body["error"]["details"] == {"table": "12"}


def test_details_hidden_in_production():
    client = TestClient(_make_app(Environment.PRODUCTION))
    resp = client.get("/conflict?lang=en")
    assert resp.json()["error"] == {"code": "TABLE_OCCUPIED", "message": "Table 12 is occupied"}


def test_compensation_failure_is_server_error():
    client = TestClient(_make_app())
    resp = client.get("/orphan")
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "COMPENSATION_FAILED"


def test_unexpected_error_is_generic_500():
    client = TestClient(_make_app(Environment.PRODUCTION), raise_server_exceptions=False)
    resp = client.get("/boom")
    assert resp.status_code == 500
    error = resp.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert "details" not in error


class _Scope:
    def __init__(self):
        self.tags = {}

    def set_tag(self, key, value):
        self.tags[key] = value


def _capture_sentry(monkeypatch):
    captured = []
    scope = _Scope()

    @contextmanager
    def new_scope():
        yield scope

    monkeypatch.setattr(obs_errors.sentry_sdk, "is_initialized", lambda: True)
    monkeypatch.setattr(obs_errors.sentry_sdk, "new_scope", new_scope)
    monkeypatch.setattr(
        obs_errors.sentry_sdk, "capture_exception", lambda exc: captured.append(exc)
    )
    return captured, scope


def test_sentry_events_tagged_with_tenant_and_order(monkeypatch):
    captured, scope = _capture_sentry(monkeypatch)
    client = TestClient(_make_app())
    client.get("/orphan", headers={"X-Tenant-ID": "demo", "X-Request-ID": "req-9"})

    assert len(captured) == 1
    assert isinstance(captured[0], CompensationFailed)
    assert scope.tags == {
        "tenant": "demo",
        "order_id": "o-1",
        "request_id": "req-9",
        "route": "/orphan",
    }


def test_unexpected_error_tagged_without_order(monkeypatch):
    captured, scope = _capture_sentry(monkeypatch)
    client = TestClient(_make_app(), raise_server_exceptions=False)
    client.get("/boom", headers={"X-Tenant-ID": "demo"})

    assert [type(e) for e in captured] == [RuntimeError]
    assert scope.tags["tenant"] == "demo"
    assert scope.tags["route"] == "/boom"
    assert "order_id" not in scope.tags


def test_capture_without_sentry_logs_tags(monkeypatch, caplog):
    monkeypatch.setattr(obs_errors.sentry_sdk, "is_initialized", lambda: False)
    with caplog.at_level("ERROR", logger="obs"):
        obs_errors.capture_exception(RuntimeError("x"), tenant="demo", order_id=None)
    record = caplog.records[-1]
    assert record.tenant == "demo"
    assert not hasattr(record, "order_id")
