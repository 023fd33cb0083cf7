"""Notification list for the signed-in user.

The list is derived, not stored: every time the signed-in identity
changes it is rebuilt from scratch out of a welcome message and one
reminder per event starting within the reminder window. Read flags live
only in memory and are lost when the list is rebuilt.
"""
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from campusconnect.models import Event
from campusconnect.store.base import EventStore

if TYPE_CHECKING:
    from campusconnect.auth.types import AuthUser

logger = logging.getLogger(__name__)

WELCOME_ID = "welcome"


class NotificationKind(str, Enum):
    REMINDER = "reminder"
    SYSTEM = "system"
    EVENT = "event"


class Notification(BaseModel):
    """A transient message shown in the notification menu.

    Attributes:
        id: Stable within one generation ("welcome", "event-reminder-<id>").
        title: Short heading.
        message: Body text.
        created_at: When the list was generated.
        read: Whether the user has marked it read.
        event_id: The event a reminder refers to.
        kind: reminder, system or event.
    """
    id: str
    title: str
    message: str
    created_at: datetime
    read: bool = False
    event_id: str | None = None
    kind: NotificationKind


def format_event_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


class NotificationCenter:
    """Sole writer of one browser's notification list."""

    def __init__(
        self,
        event_store: EventStore,
        window_days: int = 3,
        clock: Callable[[], datetime] | None = None,
    ):
        self.event_store = event_store
        self.window = timedelta(days=window_days)
        self.clock = clock or (lambda: datetime.now(UTC))
        self._notifications: list[Notification] = []

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for notification in self._notifications if not notification.read)

    def on_identity_change(self, user: "AuthUser | None") -> None:
        """Rebuild the list for ``user``; signed out means an empty list."""
        if user is None:
            self._notifications = []
            return
        self._notifications = self._generate(self.clock())
        logger.debug(f"Generated {len(self._notifications)} notifications for {user.id}")

    def _generate(self, now: datetime) -> list[Notification]:
        welcome = Notification(
            id=WELCOME_ID,
            title="Welcome to CampusConnect",
            message="Thanks for joining our platform. Start exploring campus events!",
            created_at=now,
            kind=NotificationKind.SYSTEM,
        )
        horizon = now + self.window
        reminders = [
            self._reminder(event, now)
            for event in self.event_store.get_all_events()
            if now < event.date <= horizon
        ]
        return [welcome, *reminders]

    def _reminder(self, event: Event, now: datetime) -> Notification:
        return Notification(
            id=f"event-reminder-{event.id}",
            title="Event Reminder",
            message=f"{event.title} is happening soon on {format_event_date(event.date)}",
            created_at=now,
            event_id=str(event.id),
            kind=NotificationKind.REMINDER,
        )

    def mark_as_read(self, notification_id: str) -> bool:
        """Mark one notification read; returns False when the id is unknown."""
        found = False
        for notification in self._notifications:
            if notification.id == notification_id:
                notification.read = True
                found = True
        return found

    def mark_all_as_read(self) -> None:
        for notification in self._notifications:
            notification.read = True
