"""In-memory event store used for the demo dataset and in tests."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from campusconnect.core.database import ensure_utc
from campusconnect.models import Announcement, AnnouncementData, Event, EventData, Registration
from campusconnect.store.base import (
    EventStore,
    RegistrationError,
    check_can_register,
    check_capacity,
)

logger = logging.getLogger(__name__)


def _normalized(data: EventData) -> dict:
    values = data.model_dump()
    for key in ("date", "end_date", "registration_deadline"):
        values[key] = ensure_utc(values[key])
    return values


class InMemoryEventStore(EventStore):
    """Keeps events, registrations and announcements in plain lists.

    Events are returned in insertion order. Returned lists are copies, but
    the Event objects are shared, the same way rows fetched from a table
    are the caller's to read.
    """

    def __init__(
        self,
        events: list[Event] | None = None,
        announcements: list[Announcement] | None = None,
    ):
        self._events: list[Event] = list(events or [])
        self._registrations: list[Registration] = []
        self._announcements: list[Announcement] = list(announcements or [])

    def get_all_events(self) -> list[Event]:
        return list(self._events)

    def get_event_by_id(self, event_id: UUID) -> Event | None:
        return next((event for event in self._events if event.id == event_id), None)

    def add_event(self, data: EventData) -> Event:
        event = Event.model_validate(_normalized(data))
        self._events.append(event)
        logger.info(f"Created event {event.id} ({event.title})")
        return event

    def update_event(self, event_id: UUID, data: EventData) -> Event | None:
        existing = self.get_event_by_id(event_id)
        if existing is None:
            return None
        check_capacity(existing, data)
        updated = Event.model_validate(
            {
                **_normalized(data),
                "id": existing.id,
                "current_attendees": existing.current_attendees,
                "created_at": existing.created_at,
            }
        )
        self._events[self._events.index(existing)] = updated
        logger.info(f"Updated event {event_id}")
        return updated

    def delete_event(self, event_id: UUID) -> bool:
        event = self.get_event_by_id(event_id)
        if event is None:
            return False
        self._events.remove(event)
        self._registrations = [r for r in self._registrations if r.event_id != event_id]
        logger.info(f"Deleted event {event_id} and its registrations")
        return True

    def register(self, user_id: str, event_id: UUID, now: datetime | None = None) -> Registration:
        now = now or datetime.now(UTC)
        if self.is_registered(user_id, event_id):
            raise RegistrationError("already_registered", "You are already registered for this event.")
        event = check_can_register(self.get_event_by_id(event_id), now)

        registration = Registration(user_id=user_id, event_id=event_id, registration_date=now)
        self._registrations.append(registration)
        event.current_attendees += 1
        return registration

    def cancel_registration(self, user_id: str, event_id: UUID) -> bool:
        registration = next(
            (r for r in self._registrations if r.user_id == user_id and r.event_id == event_id),
            None,
        )
        if registration is None:
            return False
        self._registrations.remove(registration)
        event = self.get_event_by_id(event_id)
        if event is not None and event.current_attendees > 0:
            event.current_attendees -= 1
        return True

    def get_registrations_for_user(self, user_id: str) -> list[Registration]:
        return [r for r in self._registrations if r.user_id == user_id]

    def count_registrations(self) -> int:
        return len(self._registrations)

    def get_all_announcements(self) -> list[Announcement]:
        return sorted(self._announcements, key=lambda a: a.created_at, reverse=True)

    def add_announcement(self, data: AnnouncementData) -> Announcement:
        announcement = Announcement.model_validate(data.model_dump())
        self._announcements.append(announcement)
        return announcement
