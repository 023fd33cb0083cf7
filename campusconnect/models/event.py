"""Event model for campus activities.

This module defines the Event model which represents a scheduled campus
activity, together with the fixed set of event categories and the
``EventData`` payload used when administrators create or edit events.
Events are the central entity: students browse and register for them,
administrators manage them through the admin forms.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from campusconnect.core.database import UTCDateTime


class EventCategory(str, Enum):
    """Fixed set of categories an event can be filed under."""

    ACADEMIC = "academic"
    ART = "art"
    CAREER = "career"
    CULTURAL = "cultural"
    SOCIAL = "social"
    SPORTS = "sports"
    TECH = "tech"
    WORKSHOP = "workshop"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class EventData(SQLModel):
    """Editable fields of an event.

    This is what the admin form produces and what ``add_event`` and
    ``update_event`` accept. Attendance counts are owned by the store and
    are deliberately absent.

    Attributes:
        title: Display title.
        description: Long description shown on the detail page.
        date: When the event starts (UTC).
        end_date: When the event ends, if known.
        location: Where the event takes place.
        category: One of ``EventCategory``.
        organizer: Club, department or person running the event.
        image: Optional image URL.
        registration_deadline: Registrations are refused after this instant.
        max_attendees: Capacity; ``None`` means unlimited.
        is_featured: Whether the event is highlighted on the home page.
    """
    title: str
    description: str
    date: datetime = Field(sa_type=UTCDateTime, index=True)
    end_date: datetime | None = Field(default=None, sa_type=UTCDateTime)
    location: str
    category: EventCategory = Field(index=True)
    organizer: str
    image: str | None = None
    registration_deadline: datetime | None = Field(default=None, sa_type=UTCDateTime)
    max_attendees: int | None = Field(default=None, gt=0)
    is_featured: bool = Field(default=False)


class Event(EventData, table=True):
    """A scheduled campus activity.

    Attributes:
        id: Unique identifier (UUID).
        current_attendees: Number of registrations; never above
            ``max_attendees`` when a capacity is set.
        created_at: When an administrator created the event.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    current_attendees: int = Field(default=0, ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_type=UTCDateTime
    )

    @property
    def is_full(self) -> bool:
        return self.max_attendees is not None and self.current_attendees >= self.max_attendees

    @property
    def spots_left(self) -> int | None:
        if self.max_attendees is None:
            return None
        return max(self.max_attendees - self.current_attendees, 0)
