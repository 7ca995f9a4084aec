"""Domain enumerations and read-state transitions for the marketplace inbox."""

from enum import StrEnum


class ReadState(StrEnum):
    """Read state of a single message from the receiver's point of view."""

    UNREAD = "unread"
    READ = "read"


class ReadEvent(StrEnum):
    """Events that can move a message between read states."""

    VIEW = "view"


class ContactNamePolicy(StrEnum):
    """Which message supplies a thread's contact display name."""

    FIRST_SEEN = "first_seen"
    LATEST = "latest"


class ThreadTieBreak(StrEnum):
    """Secondary ordering for threads whose last messages share a timestamp."""

    CONTACT_ID = "contact_id"
    CONTACT_NAME = "contact_name"
    FIRST_SEEN = "first_seen"


class NotificationVariant(StrEnum):
    """Visual weight of a transient user notification."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


# All valid (current_state, event) -> next_state mappings.
# Any pair not in this dict is an invalid transition.
READ_TRANSITIONS: dict[tuple[ReadState, str], ReadState] = {
    (ReadState.UNREAD, ReadEvent.VIEW): ReadState.READ,
}

# States that reject all events.
TERMINAL_READ_STATES: frozenset[ReadState] = frozenset({ReadState.READ})
