"""Storage access for the notification inbox."""

from inbox_api.repositories.notification_repository import NotificationRepository
from inbox_api.repositories.user_access_repository import UserAccessRepository

__all__ = ["NotificationRepository", "UserAccessRepository"]
