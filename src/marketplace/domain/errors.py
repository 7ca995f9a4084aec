"""Domain-specific exception classes for the marketplace inbox."""

from __future__ import annotations

from marketplace.domain.types import ReadState


class MarketplaceError(Exception):
    """Base class for all domain errors in the marketplace inbox."""


class InvalidInputError(MarketplaceError):
    """Raised when a caller passes data the inbox cannot interpret.

    Indicates a programming error (for example a message that involves
    neither endpoint as the current user), not a runtime condition.
    """


class PersistenceError(MarketplaceError):
    """Raised when a call to the message store fails.

    Attributes:
        operation: The store operation that failed (e.g. ``"mark_read"``).
        message_id: The message the call referred to, if any.
    """

    def __init__(self, operation: str, detail: str, message_id: str | None = None) -> None:
        self.operation = operation
        self.message_id = message_id
        target = f" for message '{message_id}'" if message_id else ""
        super().__init__(f"Store operation '{operation}' failed{target}: {detail}")


class InvalidTransitionError(MarketplaceError):
    """Raised when an invalid read-state transition is attempted.

    Attributes:
        current_state: The read state the message was in.
        event: The event that was rejected.
    """

    def __init__(self, current_state: ReadState, event: str) -> None:
        self.current_state = current_state
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in read state '{current_state}'")
