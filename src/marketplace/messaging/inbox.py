"""Inbox service owning one view's message list.

``InboxService`` is the seam between the message store and whatever renders
the inbox (the HTTP API or the CLI).  It holds the local message list for a
single signed-in user, rebuilds threads from it on demand, and routes loads,
read-marks, and sends through the store, reporting outcomes as transient
notifications rather than raising.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from marketplace.config import Settings
from marketplace.domain.errors import InvalidInputError, PersistenceError
from marketplace.domain.models import ConversationThread, Message, Notification, OutboundMessage
from marketplace.domain.types import ContactNamePolicy, ThreadTieBreak
from marketplace.messaging.compose import DEFAULT_REPLY_SUBJECT, build_message, build_reply
from marketplace.messaging.read_state import ReadMarkResult, ReadStateCoordinator
from marketplace.messaging.threads import (
    DEFAULT_UNKNOWN_NAME,
    build_threads,
    find_thread,
    total_unread,
)
from marketplace.notifications import Notifier
from marketplace.observability.metrics import MESSAGES_SENT
from marketplace.store.protocol import MessageStore

logger = structlog.get_logger()


class InboxService:
    """The direct-message inbox of one signed-in user.

    Args:
        store: The message store.
        current_user_id: The signed-in user.
        notifier: Receives success and error notifications.
        name_policy: Contact-name policy passed to ``build_threads``.
        tie_break: Thread tie-break policy passed to ``build_threads``.
        unknown_contact_name: Placeholder for contacts without a profile.
        default_reply_subject: Subject base when replying to a blank subject.
        concurrent_read_marks: Persist read flags concurrently.
        messages: Initial local message list.
    """

    def __init__(
        self,
        store: MessageStore,
        current_user_id: str,
        *,
        notifier: Notifier | None = None,
        name_policy: ContactNamePolicy = ContactNamePolicy.FIRST_SEEN,
        tie_break: ThreadTieBreak = ThreadTieBreak.CONTACT_ID,
        unknown_contact_name: str = DEFAULT_UNKNOWN_NAME,
        default_reply_subject: str = DEFAULT_REPLY_SUBJECT,
        concurrent_read_marks: bool = False,
        messages: Sequence[Message] = (),
    ) -> None:
        if not current_user_id:
            raise InvalidInputError("current_user_id must not be empty")
        self._store = store
        self._user_id = current_user_id
        self._notifier = notifier
        self._name_policy = name_policy
        self._tie_break = tie_break
        self._unknown_contact_name = unknown_contact_name
        self._default_reply_subject = default_reply_subject
        self._coordinator = ReadStateCoordinator(
            store, concurrent=concurrent_read_marks, notifier=notifier
        )
        self._messages: tuple[Message, ...] = tuple(messages)
        self._load_failed = False

    @classmethod
    def from_settings(
        cls,
        store: MessageStore,
        current_user_id: str,
        settings: Settings,
        *,
        notifier: Notifier | None = None,
    ) -> InboxService:
        """Build an inbox using the policies configured in *settings*."""
        return cls(
            store,
            current_user_id,
            notifier=notifier,
            name_policy=settings.contact_name_policy,
            tie_break=settings.thread_tie_break,
            unknown_contact_name=settings.unknown_contact_name,
            default_reply_subject=settings.default_reply_subject,
            concurrent_read_marks=settings.concurrent_read_marks,
        )

    @property
    def current_user_id(self) -> str:
        """Return the signed-in user's id."""
        return self._user_id

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return the local message list."""
        return self._messages

    @property
    def load_failed(self) -> bool:
        """Return True if the most recent ``load`` could not reach the store."""
        return self._load_failed

    def _notify(self, notification: Notification) -> None:
        if self._notifier is not None:
            self._notifier.notify(notification)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def threads(self) -> list[ConversationThread]:
        """Rebuild the thread list from the local messages."""
        return build_threads(
            self._user_id,
            self._messages,
            name_policy=self._name_policy,
            tie_break=self._tie_break,
            unknown_contact_name=self._unknown_contact_name,
        )

    def total_unread(self) -> int:
        """Return the unread count across all threads."""
        return total_unread(self.threads())

    async def load(self) -> list[ConversationThread]:
        """Replace the local messages with the store's and return the threads.

        On a store failure the previous local messages are kept and an error
        notification is raised.
        """
        try:
            messages = await self._store.list_for_user(self._user_id)
        except PersistenceError as exc:
            logger.warning("inbox_load_failed", user_id=self._user_id, error=str(exc))
            self._load_failed = True
            self._notify(Notification.error("Failed to load messages"))
            return self.threads()

        self._load_failed = False
        self._messages = tuple(messages)
        logger.info("inbox_loaded", user_id=self._user_id, messages=len(self._messages))
        return self.threads()

    async def open_thread(
        self, contact_id: str
    ) -> tuple[ConversationThread | None, ReadMarkResult]:
        """Open the thread with *contact_id*, marking its messages read.

        Returns:
            The refreshed thread (``None`` if there are no messages with the
            contact) and the read-mark result.
        """
        result = await self._coordinator.mark_thread_read(
            self._user_id, contact_id, self._messages
        )
        self._messages = result.messages
        return find_thread(self.threads(), contact_id), result

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def _insert(self, outbound: OutboundMessage, failure_text: str) -> bool:
        try:
            await self._store.insert(outbound)
        except PersistenceError as exc:
            logger.warning(
                "message_send_failed",
                sender_id=outbound.sender_id,
                receiver_id=outbound.receiver_id,
                error=str(exc),
            )
            self._notify(Notification.error(failure_text))
            return False

        MESSAGES_SENT.inc()
        logger.info("message_sent", sender_id=outbound.sender_id, receiver_id=outbound.receiver_id)
        self._notify(Notification.success("Message sent successfully"))
        return True

    async def send_reply(self, contact_id: str, body: str) -> bool:
        """Reply to the thread with *contact_id* and reload on success.

        Returns:
            True if the reply was stored. False if the insert failed, or if
            the last load failed and the thread is not known locally.

        Raises:
            InvalidInputError: If there is no thread with *contact_id* or the
                body is blank.
        """
        thread = find_thread(self.threads(), contact_id)
        if thread is None:
            if self._load_failed:
                # The load failure has already been reported.
                return False
            raise InvalidInputError(f"No conversation with contact '{contact_id}'")

        outbound = build_reply(
            self._user_id, thread, body, default_subject=self._default_reply_subject
        )
        if not await self._insert(outbound, "Failed to send reply"):
            return False
        await self.load()
        return True

    async def send_message(self, receiver_id: str, subject: str, body: str) -> bool:
        """Start a conversation with *receiver_id* from the contact form.

        The receiver's freelancer profile id is attached when they have one.
        A failed profile lookup does not block the send.

        Returns:
            True if the message was stored.

        Raises:
            InvalidInputError: If the subject or body is blank or the
                receiver is the current user.
        """
        build_message(self._user_id, receiver_id, subject, body)

        profile_id: str | None
        try:
            profile_id = await self._store.find_freelancer_profile_id(receiver_id)
        except PersistenceError as exc:
            logger.warning(
                "freelancer_profile_lookup_failed", receiver_id=receiver_id, error=str(exc)
            )
            profile_id = None

        outbound = build_message(self._user_id, receiver_id, subject, body, profile_id)
        return await self._insert(outbound, "Failed to send message")

    async def receiver_name(self, receiver_id: str) -> str:
        """Return the profile name to address a new message to.

        Users without a profile, or a failed lookup, get the unknown-contact
        placeholder.
        """
        try:
            name = await self._store.get_full_name(receiver_id)
        except PersistenceError as exc:
            logger.warning("receiver_name_lookup_failed", receiver_id=receiver_id, error=str(exc))
            return self._unknown_contact_name
        return name or self._unknown_contact_name
