"""Demo dataset seeded into an empty store.

Dates are generated relative to ``now`` so the demo always has events
happening soon (and therefore reminder notifications), later in the term,
and in the past.
"""
import logging
from datetime import UTC, datetime, timedelta

from campusconnect.models import AnnouncementData, EventCategory, EventData
from campusconnect.store.base import EventStore

logger = logging.getLogger(__name__)


def _at(now: datetime, days: int, hour: int) -> datetime:
    day = (now + timedelta(days=days)).replace(minute=0, second=0, microsecond=0)
    return day.replace(hour=hour)


def demo_events(now: datetime) -> list[EventData]:
    """Campus events spread around ``now``."""
    return [
        EventData(
            title="Hack Night",
            description="An evening of building side projects with pizza, mentors and prizes.",
            date=_at(now, 2, 18),
            end_date=_at(now, 2, 23),
            location="Engineering Building, Room 101",
            category=EventCategory.TECH,
            organizer="Computer Science Society",
            registration_deadline=_at(now, 1, 23),
            max_attendees=80,
            is_featured=True,
        ),
        EventData(
            title="Spring Career Fair",
            description="Meet recruiters from over fifty companies hiring interns and graduates.",
            date=_at(now, 9, 10),
            end_date=_at(now, 9, 16),
            location="Student Union Ballroom",
            category=EventCategory.CAREER,
            organizer="Career Services",
            is_featured=True,
        ),
        EventData(
            title="Art Fair",
            description="Student painters, sculptors and photographers show and sell their work.",
            date=_at(now, 5, 12),
            location="Fine Arts Courtyard",
            category=EventCategory.ART,
            organizer="Fine Arts Department",
            max_attendees=200,
        ),
        EventData(
            title="Intramural Soccer Finals",
            description="Come cheer for your residence hall in the season's championship match.",
            date=_at(now, 1, 17),
            location="North Field",
            category=EventCategory.SPORTS,
            organizer="Campus Recreation",
        ),
        EventData(
            title="Research Methods Workshop",
            description="A hands-on introduction to survey design and data analysis for undergraduates.",
            date=_at(now, 14, 14),
            location="Library Seminar Room B",
            category=EventCategory.WORKSHOP,
            organizer="Graduate Studies Office",
            max_attendees=25,
        ),
        EventData(
            title="International Food Festival",
            description="Taste dishes from around the world prepared by cultural student groups.",
            date=_at(now, 20, 11),
            location="Main Quad",
            category=EventCategory.CULTURAL,
            organizer="International Student Association",
            is_featured=True,
        ),
        EventData(
            title="Welcome Week Mixer",
            description="Meet new friends and learn about student clubs at the start of the term.",
            date=_at(now, -7, 19),
            location="Student Union Lounge",
            category=EventCategory.SOCIAL,
            organizer="Student Government",
        ),
    ]


def demo_announcements() -> list[AnnouncementData]:
    return [
        AnnouncementData(
            title="Library hours extended",
            content="The main library is open until 2am during the exam period.",
            author="University Library",
        ),
        AnnouncementData(
            title="Event registration is open",
            content="Sign in with your campus email to register for upcoming events.",
        ),
    ]


def seed_demo_data(store: EventStore, now: datetime | None = None) -> int:
    """Populate an empty store; returns the number of events added."""
    if not store.is_empty():
        return 0
    now = now or datetime.now(UTC)
    events = demo_events(now)
    for data in events:
        store.add_event(data)
    for data in demo_announcements():
        store.add_announcement(data)
    logger.info(f"Seeded {len(events)} demo events")
    return len(events)
