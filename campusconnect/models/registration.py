"""Registration model linking a user to an event.

A registration is created when a signed-in student registers for an
event and removed when the student cancels or when the event itself is
deleted.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from campusconnect.core.database import UTCDateTime


class Registration(SQLModel, table=True):
    """A user's claim on a place at an event.

    Attributes:
        id: Unique identifier (UUID).
        user_id: Identity provider user id of the registrant.
        event_id: Foreign key to the registered Event.
        registration_date: When the registration was made.
    """
    __tablename__ = "event_registrations"
    __table_args__ = (UniqueConstraint("user_id", "event_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    event_id: UUID = Field(foreign_key="event.id", index=True)
    registration_date: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_type=UTCDateTime
    )
