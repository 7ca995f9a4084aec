"""Contract the inbox expects from the message store."""

from __future__ import annotations

from typing import Protocol

from marketplace.domain.models import Message, OutboundMessage


class MessageStore(Protocol):
    """Persistence service holding message rows and profile lookups.

    Every method raises ``PersistenceError`` when the underlying call fails.
    """

    async def list_for_user(self, user_id: str) -> list[Message]:
        """Return every message sent or received by *user_id*, newest first."""
        ...

    async def mark_read(self, message_id: str) -> None:
        """Persist ``read = true`` for one message."""
        ...

    async def insert(self, message: OutboundMessage) -> None:
        """Insert a new message row."""
        ...

    async def get_full_name(self, user_id: str) -> str | None:
        """Return the profile name of *user_id*, or ``None`` without a profile."""
        ...

    async def find_freelancer_profile_id(self, user_id: str) -> str | None:
        """Return the freelancer profile id owned by *user_id*, if any."""
        ...
