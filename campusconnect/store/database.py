"""SQLModel-backed event store."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from campusconnect.models import Announcement, AnnouncementData, Event, EventData, Registration
from campusconnect.store.base import (
    EventStore,
    RegistrationError,
    check_can_register,
    check_capacity,
)

logger = logging.getLogger(__name__)


class DatabaseEventStore(EventStore):
    """Reads and writes the event tables through short-lived sessions.

    Every operation opens its own Session, so returned objects are
    detached snapshots: fully loaded, safe to read after the session has
    closed, never lazily refreshed.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def get_all_events(self) -> list[Event]:
        with self._session() as session:
            statement = select(Event).order_by(Event.created_at, Event.date)
            return list(session.exec(statement).all())

    def get_event_by_id(self, event_id: UUID) -> Event | None:
        with self._session() as session:
            return session.get(Event, event_id)

    def add_event(self, data: EventData) -> Event:
        event = Event.model_validate(data.model_dump())
        with self._session() as session:
            session.add(event)
            session.commit()
            session.refresh(event)
        logger.info(f"Created event {event.id} ({event.title})")
        return event

    def update_event(self, event_id: UUID, data: EventData) -> Event | None:
        with self._session() as session:
            event = session.get(Event, event_id)
            if event is None:
                return None
            check_capacity(event, data)
            for key, value in data.model_dump().items():
                setattr(event, key, value)
            session.add(event)
            session.commit()
            session.refresh(event)
        logger.info(f"Updated event {event_id}")
        return event

    def delete_event(self, event_id: UUID) -> bool:
        with self._session() as session:
            event = session.get(Event, event_id)
            if event is None:
                return False
            registrations = session.exec(
                select(Registration).where(Registration.event_id == event_id)
            ).all()
            for registration in registrations:
                session.delete(registration)
            session.flush()
            session.delete(event)
            session.commit()
        logger.info(f"Deleted event {event_id} and {len(registrations)} registrations")
        return True

    def register(self, user_id: str, event_id: UUID, now: datetime | None = None) -> Registration:
        now = now or datetime.now(UTC)
        with self._session() as session:
            existing = session.exec(
                select(Registration)
                .where(Registration.user_id == user_id)
                .where(Registration.event_id == event_id)
            ).first()
            if existing is not None:
                raise RegistrationError("already_registered", "You are already registered for this event.")

            event = check_can_register(session.get(Event, event_id), now)
            registration = Registration(user_id=user_id, event_id=event_id, registration_date=now)
            event.current_attendees += 1
            session.add(registration)
            session.add(event)
            try:
                session.commit()
            except IntegrityError:
                # A concurrent request registered the same user first
                session.rollback()
                raise RegistrationError("already_registered", "You are already registered for this event.")
            session.refresh(registration)
        return registration

    def cancel_registration(self, user_id: str, event_id: UUID) -> bool:
        with self._session() as session:
            registration = session.exec(
                select(Registration)
                .where(Registration.user_id == user_id)
                .where(Registration.event_id == event_id)
            ).first()
            if registration is None:
                return False
            event = session.get(Event, event_id)
            if event is not None and event.current_attendees > 0:
                event.current_attendees -= 1
                session.add(event)
            session.delete(registration)
            session.commit()
        return True

    def get_registrations_for_user(self, user_id: str) -> list[Registration]:
        with self._session() as session:
            statement = (
                select(Registration)
                .where(Registration.user_id == user_id)
                .order_by(Registration.registration_date)
            )
            return list(session.exec(statement).all())

    def count_registrations(self) -> int:
        with self._session() as session:
            return session.exec(select(func.count()).select_from(Registration)).one()

    def get_all_announcements(self) -> list[Announcement]:
        with self._session() as session:
            statement = select(Announcement).order_by(Announcement.created_at.desc())
            return list(session.exec(statement).all())

    def add_announcement(self, data: AnnouncementData) -> Announcement:
        announcement = Announcement.model_validate(data.model_dump())
        with self._session() as session:
            session.add(announcement)
            session.commit()
            session.refresh(announcement)
        return announcement
