"""Mapping between raw store rows and typed inbox models.

Store rows are untyped dicts whose ``sender`` / ``receiver`` keys hold the
embedded profile join (``{"full_name": ...}``), or ``None`` when the user has
no profile.  Rows are converted here, before any threading logic sees them.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from marketplace.domain.errors import InvalidInputError
from marketplace.domain.models import Message, OutboundMessage


def _profile_name(profile: Any) -> str | None:
    if isinstance(profile, dict):
        name = profile.get("full_name")
        return str(name) if name else None
    return None


def message_from_row(row: dict[str, Any]) -> Message:
    """Convert one store row into a ``Message``.

    Args:
        row: A message row as returned by the store query.

    Returns:
        The typed ``Message``.

    Raises:
        InvalidInputError: If required columns are missing or invalid.
    """
    try:
        return Message(
            id=str(row["id"]),
            sender_id=str(row["sender_id"]),
            receiver_id=str(row["receiver_id"]),
            subject=row.get("subject") or "",
            body=row.get("message") or "",
            read=bool(row.get("read", False)),
            created_at=row["created_at"],
            sender_name=_profile_name(row.get("sender")),
            receiver_name=_profile_name(row.get("receiver")),
            freelancer_profile_id=row.get("freelancer_profile_id"),
        )
    except KeyError as exc:
        raise InvalidInputError(f"Message row is missing column {exc}") from exc
    except ValidationError as exc:
        raise InvalidInputError(f"Malformed message row {row.get('id')!r}: {exc}") from exc


def messages_from_rows(rows: list[dict[str, Any]]) -> list[Message]:
    """Convert every row in *rows*, preserving order."""
    return [message_from_row(row) for row in rows]


def outbound_to_row(message: OutboundMessage) -> dict[str, Any]:
    """Convert an ``OutboundMessage`` into the column dict the store inserts."""
    row: dict[str, Any] = {
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "subject": message.subject,
        "message": message.body,
    }
    if message.freelancer_profile_id is not None:
        row["freelancer_profile_id"] = message.freelancer_profile_id
    return row
