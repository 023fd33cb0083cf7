"""Admin form payloads and their validation.

Forms arrive as raw strings. ``validate_*`` functions check them and
return a list of field errors; an empty list means the form can be
converted with ``to_event_data`` / ``to_announcement_data`` and handed to
the store. Nothing here touches the store.
"""
import re
from datetime import UTC, date, datetime, time
from typing import NamedTuple

from pydantic import BaseModel

from campusconnect.models import AnnouncementData, Event, EventCategory, EventData

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


class FieldError(NamedTuple):
    field: str
    message: str


def errors_by_field(errors: list[FieldError]) -> dict[str, list[str]]:
    """Group error messages per field for templates and JSON responses."""
    grouped: dict[str, list[str]] = {}
    for error in errors:
        grouped.setdefault(error.field, []).append(error.message)
    return grouped


class EventForm(BaseModel):
    """Raw values of the create/edit event form."""
    title: str = ""
    description: str = ""
    date: str = ""
    time: str = "12:00"
    end_date: str = ""
    location: str = ""
    category: str = ""
    organizer: str = ""
    image: str = ""
    registration_deadline: str = ""
    max_attendees: str = ""
    is_featured: bool = False

    @classmethod
    def from_event(cls, event: Event) -> "EventForm":
        """Pre-fill the form from an existing event (edit page)."""
        return cls(
            title=event.title,
            description=event.description,
            date=event.date.date().isoformat(),
            time=event.date.strftime("%H:%M"),
            end_date=event.end_date.date().isoformat() if event.end_date else "",
            location=event.location,
            category=EventCategory(event.category).value,
            organizer=event.organizer,
            image=event.image or "",
            registration_deadline=(
                event.registration_deadline.date().isoformat()
                if event.registration_deadline
                else ""
            ),
            max_attendees=str(event.max_attendees) if event.max_attendees else "",
            is_featured=event.is_featured,
        )


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _min_length(errors: list[FieldError], field: str, value: str, length: int, label: str):
    if len(value.strip()) < length:
        errors.append(FieldError(field, f"{label} must be at least {length} characters."))


def validate_event_form(form: EventForm) -> list[FieldError]:
    errors: list[FieldError] = []

    _min_length(errors, "title", form.title, 2, "Title")
    _min_length(errors, "description", form.description, 10, "Description")

    start_day = None
    if not form.date.strip():
        errors.append(FieldError("date", "Event date is required."))
    else:
        start_day = _parse_date(form.date)
        if start_day is None:
            errors.append(FieldError("date", "Please enter a valid date (YYYY-MM-DD)."))

    if not TIME_PATTERN.match(form.time.strip()):
        errors.append(FieldError("time", "Please enter a valid time in 24-hour format (HH:MM)."))

    if form.end_date.strip():
        end_day = _parse_date(form.end_date)
        if end_day is None:
            errors.append(FieldError("end_date", "Please enter a valid end date (YYYY-MM-DD)."))
        elif start_day is not None and end_day < start_day:
            errors.append(FieldError("end_date", "End date cannot be before the event date."))

    _min_length(errors, "location", form.location, 2, "Location")

    if not form.category.strip():
        errors.append(FieldError("category", "Please select a category."))
    elif form.category.strip() not in {category.value for category in EventCategory}:
        errors.append(FieldError("category", "Please select a valid category."))

    _min_length(errors, "organizer", form.organizer, 2, "Organizer")

    if form.registration_deadline.strip():
        deadline = _parse_date(form.registration_deadline)
        if deadline is None:
            errors.append(
                FieldError("registration_deadline", "Please enter a valid deadline (YYYY-MM-DD).")
            )
        elif start_day is not None and deadline > start_day:
            errors.append(
                FieldError("registration_deadline", "Registration must close before the event starts.")
            )

    if form.max_attendees.strip():
        try:
            capacity = int(form.max_attendees.strip())
        except ValueError:
            errors.append(FieldError("max_attendees", "Max attendees must be a number."))
        else:
            if capacity <= 0:
                errors.append(FieldError("max_attendees", "Max attendees must be greater than zero."))

    return errors


def to_event_data(form: EventForm) -> EventData:
    """Convert a validated form; date and time combine into a UTC instant."""
    hours, minutes = (int(part) for part in form.time.strip().split(":"))
    start = datetime.combine(_parse_date(form.date), time(hours, minutes), tzinfo=UTC)

    end_date = None
    if form.end_date.strip():
        end_date = datetime.combine(_parse_date(form.end_date), time(23, 59), tzinfo=UTC)
        end_date = max(end_date, start)

    deadline = None
    if form.registration_deadline.strip():
        deadline = datetime.combine(_parse_date(form.registration_deadline), time(23, 59), tzinfo=UTC)
        deadline = min(deadline, start)

    return EventData(
        title=form.title.strip(),
        description=form.description.strip(),
        date=start,
        end_date=end_date,
        location=form.location.strip(),
        category=EventCategory(form.category.strip()),
        organizer=form.organizer.strip(),
        image=form.image.strip() or None,
        registration_deadline=deadline,
        max_attendees=int(form.max_attendees) if form.max_attendees.strip() else None,
        is_featured=form.is_featured,
    )


class AnnouncementForm(BaseModel):
    title: str = ""
    content: str = ""


def validate_announcement_form(form: AnnouncementForm) -> list[FieldError]:
    errors: list[FieldError] = []
    _min_length(errors, "title", form.title, 2, "Title")
    _min_length(errors, "content", form.content, 10, "Content")
    return errors


def to_announcement_data(form: AnnouncementForm, author: str | None = None) -> AnnouncementData:
    data = AnnouncementData(title=form.title.strip(), content=form.content.strip())
    if author:
        data.author = author
    return data
