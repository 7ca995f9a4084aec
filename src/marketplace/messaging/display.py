"""Text helpers for rendering threads: avatar initials and relative times."""

from __future__ import annotations

from datetime import datetime

from marketplace.domain.models import Message


def initials(name: str) -> str:
    """Return up to two upper-case initials for *name*."""
    return "".join(part[0] for part in name.split() if part).upper()[:2]


def format_time(timestamp: datetime, now: datetime) -> str:
    """Format *timestamp* relative to *now* for a thread list.

    Within 24 hours the clock time is shown (``"9:05 AM"``), within 48 hours
    ``"Yesterday"``, and otherwise the short date (``"Jan 5"``).
    """
    hours = (now - timestamp).total_seconds() / 3600
    if hours < 24:
        hour = timestamp.hour % 12 or 12
        return f"{hour}:{timestamp:%M} {timestamp:%p}"
    if hours < 48:
        return "Yesterday"
    return f"{timestamp:%b} {timestamp.day}"


def display_subject(message: Message) -> str | None:
    """Return the subject to show above *message*, or ``None`` for replies."""
    if not message.subject or message.subject.startswith("Re:"):
        return None
    return message.subject
