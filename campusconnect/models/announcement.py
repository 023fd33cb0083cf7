"""Announcement model for campus-wide notices shown on the home page."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from campusconnect.core.database import UTCDateTime


class AnnouncementData(SQLModel):
    """Fields an administrator fills in when posting an announcement."""
    title: str
    content: str
    author: str = "Campus Administration"


class Announcement(AnnouncementData, table=True):
    """A notice posted by an administrator.

    Attributes:
        id: Unique identifier (UUID).
        created_at: When the announcement was posted; lists are newest first.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_type=UTCDateTime
    )
