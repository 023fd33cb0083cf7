"""Search, category filter and sort over a list of events.

Every function here is pure: it never mutates the list or the events it
is given and always returns a new list, so the same inputs produce the
same output regardless of call order.

The events page composes them in a fixed order (search, then category
filter, then sort) through ``query_events``.
"""
import unicodedata
from collections.abc import Iterable, Sequence
from enum import Enum

from campusconnect.models import Event, EventCategory

DEFAULT_SEARCH_FIELDS = ("title", "description", "organizer")
ADMIN_SEARCH_FIELDS = ("title", "organizer", "location", "category")


class SortKey(str, Enum):
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    POPULARITY = "popularity"


def _field_text(event: Event, field: str) -> str:
    value = getattr(event, field, None)
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def search_events(
    events: Sequence[Event],
    query: str | None,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> list[Event]:
    """Case-insensitive substring match of ``query`` against ``fields``.

    An empty or whitespace-only query matches everything.
    """
    needle = (query or "").strip().casefold()
    if not needle:
        return list(events)
    return [
        event
        for event in events
        if any(needle in _field_text(event, field).casefold() for field in fields)
    ]


def filter_by_categories(
    events: Sequence[Event], categories: Iterable[EventCategory | str] | None
) -> list[Event]:
    """Keep events whose category is selected; no selection keeps everything."""
    selected = {EventCategory(category) for category in categories or ()}
    if not selected:
        return list(events)
    return [event for event in events if EventCategory(event.category) in selected]


def _collation_key(title: str) -> tuple[str, str]:
    # Accents and case only break ties, the way a locale collation orders
    # "apple" < "Banana" < "banana".
    folded = title.casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base, folded


def sort_events(events: Sequence[Event], key: SortKey | str | None) -> list[Event]:
    """Sort by ``key``; ties keep their input order.

    ``None`` returns the events in input order. An unknown key raises
    ``ValueError``.
    """
    if key is None:
        return list(events)
    key = SortKey(key)

    if key is SortKey.DATE_ASC:
        return sorted(events, key=lambda event: event.date)
    if key is SortKey.DATE_DESC:
        return sorted(events, key=lambda event: event.date, reverse=True)
    if key is SortKey.TITLE_ASC:
        return sorted(events, key=lambda event: _collation_key(event.title))
    if key is SortKey.TITLE_DESC:
        return sorted(events, key=lambda event: _collation_key(event.title), reverse=True)
    return sorted(events, key=lambda event: event.current_attendees, reverse=True)


def query_events(
    events: Sequence[Event],
    query: str | None = None,
    categories: Iterable[EventCategory | str] | None = None,
    sort: SortKey | str | None = None,
) -> list[Event]:
    """Search, then filter by category, then sort."""
    results = search_events(events, query)
    results = filter_by_categories(results, categories)
    return sort_events(results, sort)
