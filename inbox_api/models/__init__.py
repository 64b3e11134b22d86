"""Database models for the notification inbox."""

from inbox_api.models.notification import SEVERITIES, Notification, UserNotification
from inbox_api.models.user import User

__all__ = [
    "User",
    "Notification",
    "UserNotification",
    "SEVERITIES",
]
