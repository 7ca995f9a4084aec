"""Domain types, models, and errors for the marketplace inbox."""

from marketplace.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    MarketplaceError,
    PersistenceError,
)
from marketplace.domain.models import (
    ConversationThread,
    Message,
    Notification,
    OutboundMessage,
    advance_read_state,
)
from marketplace.domain.types import (
    READ_TRANSITIONS,
    TERMINAL_READ_STATES,
    ContactNamePolicy,
    NotificationVariant,
    ReadEvent,
    ReadState,
    ThreadTieBreak,
)

__all__ = [
    "READ_TRANSITIONS",
    "TERMINAL_READ_STATES",
    "ContactNamePolicy",
    "ConversationThread",
    "InvalidInputError",
    "InvalidTransitionError",
    "MarketplaceError",
    "Message",
    "Notification",
    "NotificationVariant",
    "OutboundMessage",
    "PersistenceError",
    "ReadEvent",
    "ReadState",
    "ThreadTieBreak",
    "advance_read_state",
]
