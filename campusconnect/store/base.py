"""Event store interface shared by the in-memory and database stores."""
from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from campusconnect.models import Announcement, AnnouncementData, Event, EventData, Registration


class RegistrationError(Exception):
    """A registration request broke one of the registration rules."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def check_can_register(event: Event | None, now: datetime) -> Event:
    """Raise RegistrationError unless ``event`` accepts registrations at ``now``."""
    if event is None:
        raise RegistrationError("not_found", "Event not found.")
    if event.is_full:
        raise RegistrationError("event_full", "This event is already full.")
    if event.date <= now:
        raise RegistrationError("registration_closed", "This event has already started.")
    if event.registration_deadline is not None and event.registration_deadline < now:
        raise RegistrationError("registration_closed", "The registration deadline has passed.")
    return event


class CapacityError(Exception):
    """An edit would leave an event with fewer places than registrations."""

    def __init__(self, registered: int):
        self.registered = registered
        self.message = f"Capacity cannot be below the {registered} current registrations."
        super().__init__(self.message)


def check_capacity(event: Event, data: EventData) -> None:
    """Raise CapacityError if ``data`` caps ``event`` below its attendance."""
    if data.max_attendees is not None and data.max_attendees < event.current_attendees:
        raise CapacityError(event.current_attendees)


class EventStore(ABC):
    """Authoritative list of events, registrations and announcements.

    Lookups that find nothing return ``None`` (or ``False`` for deletes)
    instead of raising, so callers can treat absence as an empty result.
    """

    @abstractmethod
    def get_all_events(self) -> list[Event]: ...

    @abstractmethod
    def get_event_by_id(self, event_id: UUID) -> Event | None: ...

    @abstractmethod
    def add_event(self, data: EventData) -> Event: ...

    @abstractmethod
    def update_event(self, event_id: UUID, data: EventData) -> Event | None:
        """Replace an event's fields, raising CapacityError if it would be overbooked."""

    @abstractmethod
    def delete_event(self, event_id: UUID) -> bool:
        """Delete an event and every registration for it."""

    @abstractmethod
    def register(self, user_id: str, event_id: UUID, now: datetime) -> Registration: ...

    @abstractmethod
    def cancel_registration(self, user_id: str, event_id: UUID) -> bool: ...

    @abstractmethod
    def get_registrations_for_user(self, user_id: str) -> list[Registration]: ...

    @abstractmethod
    def count_registrations(self) -> int: ...

    @abstractmethod
    def get_all_announcements(self) -> list[Announcement]:
        """Announcements, newest first."""

    @abstractmethod
    def add_announcement(self, data: AnnouncementData) -> Announcement: ...

    def is_registered(self, user_id: str, event_id: UUID) -> bool:
        return any(r.event_id == event_id for r in self.get_registrations_for_user(user_id))

    def get_featured_events(self) -> list[Event]:
        return [event for event in self.get_all_events() if event.is_featured]

    def get_upcoming_events(self, now: datetime) -> list[Event]:
        """Events starting after ``now``, soonest first."""
        upcoming = [event for event in self.get_all_events() if event.date > now]
        return sorted(upcoming, key=lambda event: event.date)

    def is_empty(self) -> bool:
        return not self.get_all_events()
