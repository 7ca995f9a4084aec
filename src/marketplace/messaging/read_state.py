"""Marking a conversation thread as read.

Opening a thread flips every unread message the contact sent to the current
user.  Each flag is persisted with its own store call; a message is only
marked read locally once its call has succeeded, so the unread count shown
after a partial failure never under-counts.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from marketplace.domain.errors import InvalidInputError, PersistenceError
from marketplace.domain.models import Message, Notification
from marketplace.notifications import Notifier
from marketplace.observability.metrics import MESSAGES_MARKED_READ, READ_MARK_FAILURES
from marketplace.store.protocol import MessageStore

logger = structlog.get_logger()


class ReadMarkResult(BaseModel):
    """Outcome of one ``mark_thread_read`` call.

    ``messages`` is the full local message sequence after the call, with the
    read flag set for exactly the ids in ``persisted_ids``.
    """

    model_config = ConfigDict(frozen=True)

    selected_ids: tuple[str, ...]
    persisted_ids: tuple[str, ...]
    failed_ids: tuple[str, ...]
    messages: tuple[Message, ...]

    @property
    def fully_persisted(self) -> bool:
        """Return True if every selected id was persisted."""
        return not self.failed_ids


def select_unread(
    current_user_id: str, contact_id: str, messages: Sequence[Message]
) -> list[str]:
    """Return ids of unread messages *contact_id* sent to *current_user_id*.

    Input order is preserved.  An already-read thread yields an empty list.
    """
    return [
        m.id
        for m in messages
        if m.sender_id == contact_id and m.receiver_id == current_user_id and not m.read
    ]


def apply_read_marks(messages: Sequence[Message], ids: Collection[str]) -> list[Message]:
    """Return a new message list with the unread messages in *ids* marked read.

    Messages not in *ids*, and messages already read, are returned unchanged.
    """
    return [m.mark_read() if m.id in ids and not m.read else m for m in messages]


class ReadStateCoordinator:
    """Persist read flags for a thread and compute the resulting local state.

    Args:
        store: The message store receiving one ``mark_read`` call per message.
        concurrent: Issue the store calls together with ``asyncio.gather``
            instead of one after another.
        notifier: Receives an error notification when any call fails.
    """

    def __init__(
        self,
        store: MessageStore,
        *,
        concurrent: bool = False,
        notifier: Notifier | None = None,
    ) -> None:
        self._store = store
        self._concurrent = concurrent
        self._notifier = notifier

    async def mark_thread_read(
        self,
        current_user_id: str,
        contact_id: str,
        messages: Sequence[Message],
    ) -> ReadMarkResult:
        """Mark every unread message from *contact_id* as read.

        Args:
            current_user_id: The receiver viewing the thread.
            contact_id: The counterpart whose messages are being read.
            messages: The current local message sequence.

        Returns:
            A ``ReadMarkResult`` with the selected, persisted, and failed ids
            and the updated message sequence.

        Raises:
            InvalidInputError: If either id is blank or both are equal.
        """
        if not current_user_id or not contact_id:
            raise InvalidInputError("current_user_id and contact_id must not be empty")
        if current_user_id == contact_id:
            raise InvalidInputError("contact_id must differ from current_user_id")

        selected = select_unread(current_user_id, contact_id, messages)
        if not selected:
            return ReadMarkResult(
                selected_ids=(),
                persisted_ids=(),
                failed_ids=(),
                messages=tuple(messages),
            )

        if self._concurrent:
            outcomes = list(await asyncio.gather(*(self._persist(i) for i in selected)))
        else:
            outcomes = [await self._persist(i) for i in selected]

        persisted = tuple(i for i, ok in zip(selected, outcomes, strict=True) if ok)
        failed = tuple(i for i, ok in zip(selected, outcomes, strict=True) if not ok)

        logger.info(
            "thread_marked_read",
            contact_id=contact_id,
            persisted=len(persisted),
            failed=len(failed),
        )
        if failed and self._notifier is not None:
            self._notifier.notify(Notification.error("Failed to mark messages as read"))

        return ReadMarkResult(
            selected_ids=tuple(selected),
            persisted_ids=persisted,
            failed_ids=failed,
            messages=tuple(apply_read_marks(messages, set(persisted))),
        )

    async def _persist(self, message_id: str) -> bool:
        """Persist one read flag, returning False instead of raising on failure."""
        try:
            await self._store.mark_read(message_id)
        except PersistenceError as exc:
            READ_MARK_FAILURES.inc()
            logger.warning("read_mark_failed", message_id=message_id, error=str(exc))
            return False
        MESSAGES_MARKED_READ.inc()
        return True
