"""Pydantic v2 models for messages, conversation threads, and notifications."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, computed_field, field_validator, model_validator

from marketplace.domain.errors import InvalidTransitionError
from marketplace.domain.types import (
    READ_TRANSITIONS,
    TERMINAL_READ_STATES,
    NotificationVariant,
    ReadEvent,
    ReadState,
)


def advance_read_state(state: ReadState, event: str) -> ReadState:
    """Apply *event* to a read state and return the next state.

    Args:
        state: The current read state.
        event: The event string (e.g. ``"view"``).

    Returns:
        The read state after the transition.

    Raises:
        InvalidTransitionError: If *state* is terminal or the pair is not in
            ``READ_TRANSITIONS``.
    """
    if state in TERMINAL_READ_STATES:
        raise InvalidTransitionError(state, event)
    key = (state, event)
    if key not in READ_TRANSITIONS:
        raise InvalidTransitionError(state, event)
    return READ_TRANSITIONS[key]


class Message(BaseModel):
    """A single direct message between two marketplace users.

    Immutable except for the read flag, which only ever moves from unread to
    read.  ``sender_name`` and ``receiver_name`` come from the profile joins
    of the store query and are ``None`` when the user has no profile record.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    sender_id: str
    receiver_id: str
    subject: str = ""
    body: str = ""
    read: bool = False
    created_at: datetime
    sender_name: str | None = None
    receiver_name: str | None = None
    freelancer_profile_id: str | None = None

    @field_validator("id", "sender_id", "receiver_id")
    @classmethod
    def ids_must_not_be_blank(cls, v: str) -> str:
        """Reject empty identifiers."""
        if not v.strip():
            raise ValueError("identifiers must not be blank")
        return v

    @field_validator("created_at")
    @classmethod
    def assume_utc_when_naive(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC so all values stay comparable."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def participants_must_differ(self) -> "Message":
        """Ensure a message is never addressed to its own sender."""
        if self.sender_id == self.receiver_id:
            raise ValueError(f"sender_id and receiver_id must differ (both '{self.sender_id}')")
        return self

    @property
    def read_state(self) -> ReadState:
        """Return the read flag as a ``ReadState``."""
        return ReadState.READ if self.read else ReadState.UNREAD

    def involves(self, user_id: str) -> bool:
        """Return True if *user_id* is the sender or the receiver."""
        return user_id in (self.sender_id, self.receiver_id)

    def mark_read(self) -> "Message":
        """Return a copy of this message in the read state.

        Raises:
            InvalidTransitionError: If the message is already read.
        """
        new_state = advance_read_state(self.read_state, ReadEvent.VIEW)
        return self.model_copy(update={"read": new_state == ReadState.READ})


class ConversationThread(BaseModel):
    """All messages exchanged with one contact, derived and never persisted.

    ``messages`` is ordered oldest first for display.  ``last_message`` is the
    message with the latest ``created_at`` regardless of input order.
    """

    model_config = ConfigDict(frozen=True)

    contact_id: str
    contact_name: str
    messages: tuple[Message, ...]
    last_message: Message
    unread_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def last_message_time(self) -> datetime:
        """Timestamp of the newest message in the thread."""
        return self.last_message.created_at


class OutboundMessage(BaseModel):
    """A message to be inserted into the store by the send or reply path."""

    model_config = ConfigDict(frozen=True)

    sender_id: str
    receiver_id: str
    subject: str
    body: str
    freelancer_profile_id: str | None = None


class Notification(BaseModel):
    """A transient, user-visible notice about the outcome of an inbox action."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    @classmethod
    def error(cls, description: str) -> "Notification":
        """Build a destructive ``Error`` notification."""
        return cls(title="Error", description=description, variant=NotificationVariant.DESTRUCTIVE)

    @classmethod
    def success(cls, description: str) -> "Notification":
        """Build a default ``Success`` notification."""
        return cls(title="Success", description=description)
