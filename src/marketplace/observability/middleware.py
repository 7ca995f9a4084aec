"""Per-request log context and access logging for the inbox API.

Every request gets an ``X-Request-ID`` (echoed from the client or generated)
bound into structlog contextvars together with the method and path, so log
lines written while serving the request can be correlated.  Route handlers
add ``user_id`` once they know whose inbox is being served.  A single
``request_completed`` line with status and duration closes each request;
health and scrape endpoints are served silently.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/ready", "/metrics"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request context for logging and write one access log line per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            service="marketplace-inbox",
            method=request.method,
            path=path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", method=request.method, path=path)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        if path not in QUIET_PATHS:
            logger.info(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return response
