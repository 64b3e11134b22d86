"""Services for the notification inbox API."""

from inbox_api.services.notifications import NotificationService

__all__ = ["NotificationService"]
