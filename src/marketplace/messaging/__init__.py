"""Messaging inbox: threading, read state, composing, and the inbox service."""

from marketplace.messaging.compose import build_message, build_reply, reply_subject
from marketplace.messaging.display import display_subject, format_time, initials
from marketplace.messaging.inbox import InboxService
from marketplace.messaging.mapping import message_from_row, messages_from_rows, outbound_to_row
from marketplace.messaging.read_state import (
    ReadMarkResult,
    ReadStateCoordinator,
    apply_read_marks,
    select_unread,
)
from marketplace.messaging.threads import (
    build_threads,
    contact_id_for,
    find_thread,
    total_unread,
)

__all__ = [
    "InboxService",
    "ReadMarkResult",
    "ReadStateCoordinator",
    "apply_read_marks",
    "build_message",
    "build_reply",
    "build_threads",
    "contact_id_for",
    "display_subject",
    "find_thread",
    "format_time",
    "initials",
    "message_from_row",
    "messages_from_rows",
    "outbound_to_row",
    "reply_subject",
    "select_unread",
    "total_unread",
]
