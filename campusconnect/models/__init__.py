from campusconnect.models.account import Account, AuthToken, Profile, Role
from campusconnect.models.announcement import Announcement, AnnouncementData
from campusconnect.models.event import Event, EventCategory, EventData
from campusconnect.models.registration import Registration

__all__ = [
    "Account",
    "Announcement",
    "AnnouncementData",
    "AuthToken",
    "Event",
    "EventCategory",
    "EventData",
    "Profile",
    "Registration",
    "Role",
]
