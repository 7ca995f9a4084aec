"""Tests for /health and /ready observability endpoints.

Uses FastAPI TestClient with a real (unused) httpx client to verify liveness
and readiness checks without external dependencies.
"""

from __future__ import annotations

import asyncio

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.config import Settings
from marketplace.health import register_health_routes

CONFIGURED = Settings(
    _env_file=None,  # type: ignore[call-arg]
    supabase_url="https://project.supabase.co",
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_app(services: dict | None = None) -> FastAPI:
    """Create a minimal FastAPI app with health routes and given services."""
    app = FastAPI()
    app.state.services = services or {}
    register_health_routes(app)
    return app


# ---------------------------------------------------------------------------
# /health (liveness)
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health liveness check."""

    def test_health_returns_200(self) -> None:
        client = TestClient(_make_app())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# /ready (readiness)
# ---------------------------------------------------------------------------

class TestReadyEndpoint:
    """GET /ready readiness check."""

    def test_ready_returns_200_when_services_ok(self) -> None:
        app = _make_app({"settings": CONFIGURED, "http_client": httpx.AsyncClient()})
        client = TestClient(app)

        response = client.get("/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"] == {"database_config": "ok", "http_client": "ok"}

    def test_ready_returns_503_when_url_missing(self) -> None:
        unconfigured = Settings(_env_file=None)  # type: ignore[call-arg]
        app = _make_app({"settings": unconfigured, "http_client": httpx.AsyncClient()})
        client = TestClient(app)

        response = client.get("/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["checks"]["database_config"] == "fail"
        assert body["checks"]["http_client"] == "ok"

    def test_ready_returns_503_when_client_closed(self) -> None:
        http_client = httpx.AsyncClient()
        asyncio.run(http_client.aclose())
        app = _make_app({"settings": CONFIGURED, "http_client": http_client})
        client = TestClient(app)

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["http_client"] == "fail"

    def test_ready_returns_503_when_no_services(self) -> None:
        client = TestClient(_make_app())

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"] == {"database_config": "fail", "http_client": "fail"}
