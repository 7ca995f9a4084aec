"""Building outbound messages for the reply and contact-form paths.

Reply subjects follow the usual mail convention: ``Re: `` is prefixed only if
the subject does not already start with it (case-insensitive).
"""

from __future__ import annotations

from marketplace.domain.errors import InvalidInputError
from marketplace.domain.models import ConversationThread, OutboundMessage

DEFAULT_REPLY_SUBJECT = "Conversation"


def reply_subject(subject: str, default: str = DEFAULT_REPLY_SUBJECT) -> str:
    """Return the subject line for a reply to a message titled *subject*.

    Args:
        subject: The subject being replied to.  Blank subjects fall back to
            *default*.
        default: Subject used when *subject* is blank.

    Returns:
        The reply subject, e.g. ``"Re: Logo design"``.
    """
    subject = subject.strip() or default
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}"


def build_reply(
    current_user_id: str,
    thread: ConversationThread,
    body: str,
    *,
    default_subject: str = DEFAULT_REPLY_SUBJECT,
) -> OutboundMessage:
    """Build a reply from *current_user_id* to the contact of *thread*.

    The subject is derived from the newest message in the thread.

    Raises:
        InvalidInputError: If *body* is blank or the current user is the
            thread's own contact.
    """
    if not body.strip():
        raise InvalidInputError("Reply body must not be blank")
    if thread.contact_id == current_user_id:
        raise InvalidInputError("Cannot reply to a thread keyed by the current user")

    return OutboundMessage(
        sender_id=current_user_id,
        receiver_id=thread.contact_id,
        subject=reply_subject(thread.last_message.subject, default_subject),
        body=body,
    )


def build_message(
    sender_id: str,
    receiver_id: str,
    subject: str,
    body: str,
    freelancer_profile_id: str | None = None,
) -> OutboundMessage:
    """Build the first message of a new conversation.

    Raises:
        InvalidInputError: If the subject or body is blank, either id is
            blank, or the message is addressed to its sender.
    """
    if not sender_id or not receiver_id:
        raise InvalidInputError("sender_id and receiver_id must not be empty")
    if sender_id == receiver_id:
        raise InvalidInputError("Cannot send a message to yourself")
    if not subject.strip():
        raise InvalidInputError("Subject must not be blank")
    if not body.strip():
        raise InvalidInputError("Message body must not be blank")

    return OutboundMessage(
        sender_id=sender_id,
        receiver_id=receiver_id,
        subject=subject,
        body=body,
        freelancer_profile_id=freelancer_profile_id,
    )
