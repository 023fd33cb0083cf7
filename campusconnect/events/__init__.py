from campusconnect.events.forms import AnnouncementForm, EventForm, FieldError
from campusconnect.events.query import SortKey, query_events

__all__ = ["AnnouncementForm", "EventForm", "FieldError", "SortKey", "query_events"]
