"""Tests for the request context and access-log middleware."""

from __future__ import annotations

import re

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.observability.middleware import RequestIdMiddleware

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _make_app() -> FastAPI:
    """Create a minimal FastAPI app with RequestIdMiddleware."""
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/test")
    async def test_endpoint():
        return {"ok": True}

    @app.get("/context")
    async def context_endpoint():
        return structlog.contextvars.get_contextvars()

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("store exploded")

    return app


def test_response_has_auto_generated_request_id() -> None:
    """When no X-Request-ID header is sent, response has an auto-generated UUID."""
    client = TestClient(_make_app())
    resp = client.get("/test")
    assert resp.status_code == 200
    request_id = resp.headers.get("X-Request-ID", "")
    assert request_id, "X-Request-ID header should be present"
    assert UUID4_PATTERN.match(request_id), f"Expected UUID4 format, got: {request_id}"


def test_response_echoes_client_request_id() -> None:
    """When client sends X-Request-ID, response echoes the same value."""
    client = TestClient(_make_app())
    resp = client.get("/test", headers={"X-Request-ID": "test-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "test-123"


def test_request_context_bound_to_log_context() -> None:
    """Handlers see the request id, service, method, and path in contextvars."""
    client = TestClient(_make_app())
    resp = client.get("/context", headers={"X-Request-ID": "abc"})
    assert resp.json() == {
        "request_id": "abc",
        "service": "marketplace-inbox",
        "method": "GET",
        "path": "/context",
    }


def test_completed_request_is_logged() -> None:
    client = TestClient(_make_app())
    with structlog.testing.capture_logs() as logs:
        client.get("/test")

    completed = [e for e in logs if e["event"] == "request_completed"]
    assert len(completed) == 1
    assert completed[0]["status_code"] == 200
    assert completed[0]["path"] == "/test"
    assert completed[0]["duration_ms"] >= 0


def test_health_paths_are_not_logged() -> None:
    client = TestClient(_make_app())
    with structlog.testing.capture_logs() as logs:
        client.get("/health")

    assert [e for e in logs if e["event"] == "request_completed"] == []


def test_unhandled_error_is_logged_and_reraised() -> None:
    client = TestClient(_make_app())
    with structlog.testing.capture_logs() as logs, pytest.raises(RuntimeError):
        client.get("/boom")

    failed = [e for e in logs if e["event"] == "request_failed"]
    assert failed[0]["path"] == "/boom"
    assert failed[0]["log_level"] == "error"
