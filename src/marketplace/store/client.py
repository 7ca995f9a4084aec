"""HTTP client for the hosted database service's REST endpoint.

Talks to a PostgREST-style API (``/rest/v1/<table>``) with ``httpx``.  Every
request carries the project's ``apikey`` header and a bearer token: the
caller's access token when one is supplied, so row-level policies apply to
that user, otherwise the anon key.

Transient failures are retried via ``resilient_api_call``; whatever still
fails is raised as ``PersistenceError``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from marketplace.config import Settings
from marketplace.domain.errors import PersistenceError
from marketplace.domain.models import Message, OutboundMessage
from marketplace.messaging.mapping import messages_from_rows, outbound_to_row
from marketplace.resilience.retry import resilient_api_call

logger = structlog.get_logger()

MESSAGE_SELECT = (
    "*,"
    "sender:profiles!messages_sender_id_fkey(full_name),"
    "receiver:profiles!messages_receiver_id_fkey(full_name)"
)


def quote_filter_value(value: str) -> str:
    """Quote *value* for use inside a PostgREST logic tree such as ``or=(...)``.

    Inside a logic tree ``,`` ``.`` ``:`` and parentheses are reserved, so the
    value is wrapped in double quotes with ``"`` and ``\\`` backslash-escaped.
    Simple ``column=eq.value`` parameters take the rest of the string
    verbatim and need no quoting.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseMessageStore:
    """Message store backed by the hosted database's REST API.

    Args:
        base_url: The project URL, e.g. ``https://xyz.supabase.co``.
        api_key: The project's anon key.
        access_token: The signed-in user's JWT.  Defaults to *api_key*.
        timeout: Per-request timeout in seconds.
        retry_attempts: Attempts per request for transient failures.
        retry_initial_wait: Initial retry backoff in seconds.
        client: An existing ``httpx.AsyncClient`` to reuse.  The store only
            closes clients it created itself.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_initial_wait: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._send = resilient_api_call(
            "supabase",
            attempts=retry_attempts,
            initial_wait=retry_initial_wait,
        )(self._send_once)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> SupabaseMessageStore:
        """Build a store from application settings."""
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key.get_secret_value(),
            access_token=access_token,
            timeout=settings.request_timeout,
            retry_attempts=settings.retry_attempts,
            retry_initial_wait=settings.retry_initial_wait,
            client=client,
        )

    @property
    def is_closed(self) -> bool:
        """Return True if the underlying HTTP client has been closed."""
        return self._client.is_closed

    async def aclose(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send_once(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        response = await self._client.request(
            method,
            f"{self._rest_url}/{table}",
            params=params,
            json=json,
            headers=headers,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response

    async def _request(
        self,
        operation: str,
        method: str,
        table: str,
        *,
        message_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await self._send(method, table, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "store_request_failed",
                operation=operation,
                table=table,
                message_id=message_id,
                error=str(exc),
            )
            raise PersistenceError(operation, str(exc), message_id=message_id) from exc

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def list_for_user(self, user_id: str) -> list[Message]:
        """Return every message sent or received by *user_id*, newest first.

        Raises:
            PersistenceError: If the query fails.
            InvalidInputError: If a returned row cannot be mapped.
        """
        quoted = quote_filter_value(user_id)
        response = await self._request(
            "list_for_user",
            "GET",
            "messages",
            params={
                "select": MESSAGE_SELECT,
                "or": f"(sender_id.eq.{quoted},receiver_id.eq.{quoted})",
                "order": "created_at.desc",
            },
        )
        messages = messages_from_rows(_json_rows("list_for_user", response))
        logger.debug("messages_loaded", user_id=user_id, count=len(messages))
        return messages

    async def mark_read(self, message_id: str) -> None:
        """Persist ``read = true`` for *message_id*.

        Raises:
            PersistenceError: If the update fails.
        """
        await self._request(
            "mark_read",
            "PATCH",
            "messages",
            message_id=message_id,
            params={"id": f"eq.{message_id}"},
            json={"read": True},
            prefer="return=minimal",
        )

    async def insert(self, message: OutboundMessage) -> None:
        """Insert *message* as a new row.

        Raises:
            PersistenceError: If the insert fails.
        """
        await self._request(
            "insert",
            "POST",
            "messages",
            json=[outbound_to_row(message)],
            prefer="return=minimal",
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def _first_row(self, operation: str, table: str, params: dict[str, str]) -> Any:
        response = await self._request(operation, "GET", table, params=params)
        rows = _json_rows(operation, response)
        return rows[0] if rows else None

    async def get_full_name(self, user_id: str) -> str | None:
        """Return the profile ``full_name`` of *user_id*, or ``None``."""
        row = await self._first_row(
            "get_full_name",
            "profiles",
            {"select": "full_name", "id": f"eq.{user_id}", "limit": "1"},
        )
        if row is None or not row.get("full_name"):
            return None
        return str(row["full_name"])

    async def find_freelancer_profile_id(self, user_id: str) -> str | None:
        """Return the id of the freelancer profile owned by *user_id*, or ``None``."""
        row = await self._first_row(
            "find_freelancer_profile_id",
            "freelancer_profiles",
            {"select": "id", "user_id": f"eq.{user_id}", "limit": "1"},
        )
        if row is None:
            return None
        return str(row["id"])


def _json_rows(operation: str, response: httpx.Response) -> list[dict[str, Any]]:
    """Decode a 2xx response body that must be a JSON array of row objects.

    Raises:
        PersistenceError: If the body is not JSON (e.g. an HTML error page
            from a proxy) or not an array of objects.
    """
    try:
        rows = response.json()
    except ValueError as exc:
        logger.warning("store_response_undecodable", operation=operation, error=str(exc))
        raise PersistenceError(operation, f"response is not JSON: {exc}") from exc

    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        logger.warning(
            "store_response_unexpected", operation=operation, body_type=type(rows).__name__
        )
        raise PersistenceError(operation, "expected a JSON array of rows")
    return rows
