"""Application entry point serving the inbox over HTTP with FastAPI.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Shared httpx client** reused by a per-request message store that forwards
  the caller's bearer token to the database service
- **Inbox routes** for listing threads, marking a thread read, replying, and
  starting a conversation
- **Health, metrics, and request-id** middleware
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any, TextIO

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from marketplace.config import Settings, get_settings, validate_credentials
from marketplace.domain.errors import InvalidInputError
from marketplace.health import register_health_routes
from marketplace.messaging.inbox import InboxService
from marketplace.notifications import NotificationLog
from marketplace.observability.metrics import setup_metrics
from marketplace.observability.middleware import RequestIdMiddleware
from marketplace.store.client import SupabaseMessageStore
from marketplace.store.protocol import MessageStore

logger = structlog.get_logger()

StoreFactory = Callable[[str | None], MessageStore]


class ReplyRequest(BaseModel):
    """Body of ``POST /users/{user_id}/threads/{contact_id}/reply``."""

    body: str


class SendMessageRequest(BaseModel):
    """Body of ``POST /users/{user_id}/messages``."""

    receiver_id: str
    subject: str
    body: str


def configure_logging(production: bool = False, stream: TextIO | None = None) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        stream: Where log lines are written.  Defaults to stdout.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="marketplace-inbox")


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up the shared services for the application.

    Creates one ``httpx.AsyncClient`` for the process and a store factory
    that builds a ``SupabaseMessageStore`` per access token on top of it.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    http_client = httpx.AsyncClient()

    def store_factory(access_token: str | None) -> MessageStore:
        return SupabaseMessageStore.from_settings(
            settings, access_token=access_token, client=http_client
        )

    logger.info("Services initialized", supabase_url=settings.supabase_url)
    return {
        "settings": settings,
        "http_client": http_client,
        "store_factory": store_factory,
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager; closes the shared HTTP client on shutdown."""
    logger.info("FastAPI application starting")
    yield
    http_client = app.state.services.get("http_client")
    if http_client is not None:
        await http_client.aclose()
        logger.info("HTTP client closed")


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token
    return None


def _open_inbox(request: Request, user_id: str) -> tuple[InboxService, NotificationLog]:
    services = request.app.state.services
    structlog.contextvars.bind_contextvars(user_id=user_id)
    store_factory: StoreFactory = services["store_factory"]
    notifications = NotificationLog()
    inbox = InboxService.from_settings(
        store_factory(_bearer_token(request)),
        user_id,
        services["settings"],
        notifier=notifications,
    )
    return inbox, notifications


def _dump_notifications(log: NotificationLog) -> list[dict[str, Any]]:
    return [n.model_dump(mode="json") for n in log.drain()]


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with inbox, health, and metrics routes.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Marketplace Inbox", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.add_middleware(RequestIdMiddleware)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)

    @fastapi_app.exception_handler(InvalidInputError)
    async def invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        logger.warning("invalid_input", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @fastapi_app.get("/users/{user_id}/threads")
    async def list_threads(user_id: str, request: Request) -> dict[str, Any]:
        """Load the user's messages and return the thread list."""
        inbox, notifications = _open_inbox(request, user_id)
        threads = await inbox.load()
        return {
            "threads": [t.model_dump(mode="json") for t in threads],
            "total_unread": sum(t.unread_count for t in threads),
            "notifications": _dump_notifications(notifications),
        }

    @fastapi_app.post("/users/{user_id}/threads/{contact_id}/read")
    async def mark_thread_read(user_id: str, contact_id: str, request: Request) -> dict[str, Any]:
        """Mark the thread with *contact_id* read and return the refreshed thread."""
        inbox, notifications = _open_inbox(request, user_id)
        await inbox.load()
        thread, result = await inbox.open_thread(contact_id)
        return {
            "thread": thread.model_dump(mode="json") if thread is not None else None,
            "persisted_ids": list(result.persisted_ids),
            "failed_ids": list(result.failed_ids),
            "fully_persisted": result.fully_persisted,
            "total_unread": inbox.total_unread(),
            "notifications": _dump_notifications(notifications),
        }

    @fastapi_app.post("/users/{user_id}/threads/{contact_id}/reply")
    async def reply(
        user_id: str, contact_id: str, payload: ReplyRequest, request: Request
    ) -> JSONResponse:
        """Reply to the thread with *contact_id*."""
        inbox, notifications = _open_inbox(request, user_id)
        await inbox.load()
        sent = await inbox.send_reply(contact_id, payload.body)
        return JSONResponse(
            status_code=201 if sent else 502,
            content={"sent": sent, "notifications": _dump_notifications(notifications)},
        )

    @fastapi_app.post("/users/{user_id}/messages")
    async def send_message(
        user_id: str, payload: SendMessageRequest, request: Request
    ) -> JSONResponse:
        """Start a new conversation from the contact form."""
        inbox, notifications = _open_inbox(request, user_id)
        sent = await inbox.send_message(payload.receiver_id, payload.subject, payload.body)
        return JSONResponse(
            status_code=201 if sent else 502,
            content={
                "sent": sent,
                "receiver_name": await inbox.receiver_name(payload.receiver_id),
                "notifications": _dump_notifications(notifications),
            },
        )

    return fastapi_app


async def main() -> None:
    """Main entry point: configure logging, validate credentials, and serve."""
    settings = get_settings()
    configure_logging(production=settings.production)
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)

    try:
        await server.serve()
    finally:
        http_client = services["http_client"]
        if not http_client.is_closed:
            await http_client.aclose()
            logger.info("HTTP client closed on shutdown")


if __name__ == "__main__":
    asyncio.run(main())
