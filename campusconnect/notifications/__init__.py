from campusconnect.notifications.center import Notification, NotificationCenter, NotificationKind
from campusconnect.notifications.toasts import Toast, Toaster

__all__ = ["Notification", "NotificationCenter", "NotificationKind", "Toast", "Toaster"]
