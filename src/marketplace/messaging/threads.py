"""Conversation threading for the direct-message inbox.

Groups the flat list of messages involving the current user into one
``ConversationThread`` per counterpart, computes unread counts and the newest
message of each thread, and orders threads newest first.

Everything here is pure: the same input always yields an equal thread list
and nothing is mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from marketplace.domain.errors import InvalidInputError
from marketplace.domain.models import ConversationThread, Message
from marketplace.domain.types import ContactNamePolicy, ThreadTieBreak

DEFAULT_UNKNOWN_NAME = "Unknown"


def contact_id_for(current_user_id: str, message: Message) -> str:
    """Return the counterpart of *message* relative to *current_user_id*.

    Raises:
        InvalidInputError: If the message involves neither endpoint as the
            current user.
    """
    if message.receiver_id == current_user_id:
        return message.sender_id
    if message.sender_id == current_user_id:
        return message.receiver_id
    raise InvalidInputError(
        f"Message '{message.id}' involves neither endpoint as user '{current_user_id}'"
    )


def _counterpart_name(current_user_id: str, message: Message) -> str | None:
    if message.receiver_id == current_user_id:
        return message.sender_name
    return message.receiver_name


def _resolve_name(
    current_user_id: str,
    messages: list[Message],
    policy: ContactNamePolicy,
    unknown_contact_name: str,
) -> str:
    """Pick the contact display name for a thread according to *policy*."""
    if policy == ContactNamePolicy.LATEST:
        candidates: Iterable[Message] = sorted(
            messages, key=lambda m: m.created_at, reverse=True
        )
    else:
        candidates = messages

    for message in candidates:
        name = _counterpart_name(current_user_id, message)
        if name:
            return name
    return unknown_contact_name


def _latest(messages: list[Message]) -> Message:
    """Return the message with the maximum ``created_at`` (first seen on ties)."""
    latest = messages[0]
    for message in messages[1:]:
        if message.created_at > latest.created_at:
            latest = message
    return latest


def build_threads(
    current_user_id: str,
    messages: Sequence[Message],
    *,
    name_policy: ContactNamePolicy = ContactNamePolicy.FIRST_SEEN,
    tie_break: ThreadTieBreak = ThreadTieBreak.CONTACT_ID,
    unknown_contact_name: str = DEFAULT_UNKNOWN_NAME,
) -> list[ConversationThread]:
    """Group *messages* into conversation threads for *current_user_id*.

    Each message is keyed by its counterpart: the sender when the current
    user received it, otherwise the receiver.  The input order does not
    affect the result except where a policy says so explicitly
    (``ContactNamePolicy.FIRST_SEEN`` and ``ThreadTieBreak.FIRST_SEEN``).

    Args:
        current_user_id: The user whose inbox is being built.
        messages: Every message involving the current user, in any order.
        name_policy: Which message supplies the contact name.
        tie_break: Secondary ordering for threads with equal
            ``last_message_time``.
        unknown_contact_name: Name used when no message carries the
            contact's profile name.

    Returns:
        Threads sorted by ``last_message_time`` descending.

    Raises:
        InvalidInputError: If *current_user_id* is blank or a message
            involves neither endpoint as the current user.
    """
    if not current_user_id:
        raise InvalidInputError("current_user_id must not be empty")

    grouped: dict[str, list[Message]] = {}
    for message in messages:
        grouped.setdefault(contact_id_for(current_user_id, message), []).append(message)

    threads: list[ConversationThread] = []
    for contact_id, thread_messages in grouped.items():
        unread_count = sum(
            1 for m in thread_messages if m.receiver_id == current_user_id and not m.read
        )
        threads.append(
            ConversationThread(
                contact_id=contact_id,
                contact_name=_resolve_name(
                    current_user_id, thread_messages, name_policy, unknown_contact_name
                ),
                messages=tuple(sorted(thread_messages, key=lambda m: m.created_at)),
                last_message=_latest(thread_messages),
                unread_count=unread_count,
            )
        )

    return _order_threads(threads, tie_break)


def _order_threads(
    threads: list[ConversationThread], tie_break: ThreadTieBreak
) -> list[ConversationThread]:
    # Both sorts are stable, so sorting by the secondary key first and then
    # by time (descending) leaves equal-time threads in secondary order.
    secondary_keys: dict[ThreadTieBreak, Any] = {
        ThreadTieBreak.CONTACT_ID: lambda t: t.contact_id,
        ThreadTieBreak.CONTACT_NAME: lambda t: (t.contact_name, t.contact_id),
    }
    ordered = list(threads)
    secondary = secondary_keys.get(tie_break)
    if secondary is not None:
        ordered.sort(key=secondary)
    ordered.sort(key=lambda t: t.last_message_time, reverse=True)
    return ordered


def total_unread(threads: Iterable[ConversationThread]) -> int:
    """Return the unread count summed across *threads*."""
    return sum(thread.unread_count for thread in threads)


def find_thread(
    threads: Iterable[ConversationThread], contact_id: str
) -> ConversationThread | None:
    """Return the thread with *contact_id*, or ``None`` if there is none."""
    for thread in threads:
        if thread.contact_id == contact_id:
            return thread
    return None
