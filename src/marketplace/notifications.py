"""Transient user notifications for inbox actions.

A ``Notifier`` receives ``Notification`` objects when a load, send, or
read-mark fails (or a send succeeds).  ``NotificationLog`` is the in-memory
implementation used by the HTTP API and the CLI, which hand the collected
notices back to the user after the action completes.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from marketplace.domain.models import Notification
from marketplace.domain.types import NotificationVariant

logger = structlog.get_logger()


class Notifier(Protocol):
    """Anything that can surface a transient notification to the user."""

    def notify(self, notification: Notification) -> None: ...


class NotificationLog:
    """Collect notifications in memory, in the order they were raised."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        """Record *notification* and log it."""
        destructive = notification.variant == NotificationVariant.DESTRUCTIVE
        log = logger.warning if destructive else logger.info
        log("notification", title=notification.title, description=notification.description)
        self._items.append(notification)

    @property
    def items(self) -> list[Notification]:
        """Return a copy of the recorded notifications."""
        return list(self._items)

    def drain(self) -> list[Notification]:
        """Return and clear the recorded notifications."""
        items, self._items = self._items, []
        return items
