"""Health and readiness endpoints for container orchestration.

- ``GET /health`` -- Liveness check.  Returns 200 if the process is alive.
- ``GET /ready``  -- Readiness check.  Returns 200 only when the database
  service is configured **and** the shared HTTP client is open.  Returns 503
  with per-check details otherwise.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*.

    Args:
        app: The FastAPI application instance.
    """

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness check -- always returns 200 if the process is running."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness check -- checks service configuration and HTTP client."""
        services: dict[str, Any] = request.app.state.services
        checks: dict[str, str] = {}

        settings = services.get("settings")
        if settings is not None and settings.supabase_url:
            checks["database_config"] = "ok"
        else:
            checks["database_config"] = "fail"

        http_client = services.get("http_client")
        if http_client is not None and not http_client.is_closed:
            checks["http_client"] = "ok"
        else:
            checks["http_client"] = "fail"

        all_ok = all(v == "ok" for v in checks.values())
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(content={"status": status, "checks": checks}, status_code=code)
