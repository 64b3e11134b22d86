"""Notification inbox service.

Every operation first checks that the acting user may use the inbox, then
normalizes its input and hands off to :class:`NotificationRepository`.
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inbox_api.errors import NotificationAccessDenied, NotificationValidationError
from inbox_api.query import build_bulk_read_command, build_list_query
from inbox_api.repositories import NotificationRepository, UserAccessRepository
from inbox_api.schemas.notifications import (
    BulkReadRequest,
    NotificationDetail,
    NotificationListRequest,
    NotificationListResponse,
    NotificationStats,
)

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for user-facing notification inbox operations."""

    def __init__(
        self,
        notifications: NotificationRepository,
        user_access: UserAccessRepository,
    ):
        self.notifications = notifications
        self.user_access = user_access

    @classmethod
    def for_session(cls, db: AsyncSession) -> "NotificationService":
        return cls(NotificationRepository(db), UserAccessRepository(db))

    async def list(
        self, user_id: UUID, request: NotificationListRequest
    ) -> NotificationListResponse:
        """List one page of the user's notifications.

        Raises:
            NotificationAccessDenied: If the user has no inbox.
            NotificationValidationError: If a list parameter is invalid.
        """
        await self.ensure_access(user_id)
        try:
            query = build_list_query(request)
        except NotificationValidationError as exc:
            logger.info("list_request_rejected", user_id=str(user_id), field=exc.field)
            raise

        response = await self.notifications.list(user_id, query)
        logger.info(
            "list_notifications",
            user_id=str(user_id),
            limit=query.limit,
            sort=query.sort.value,
            returned=len(response.items),
            has_cursor=query.cursor is not None,
        )
        return response

    async def get(self, user_id: UUID, notification_id: UUID) -> NotificationDetail | None:
        await self.ensure_access(user_id)
        return await self.notifications.get(user_id, notification_id)

    async def mark_read(self, user_id: UUID, notification_id: UUID, is_read: bool) -> bool:
        await self.ensure_access(user_id)
        updated = await self.notifications.mark_read(user_id, notification_id, is_read)
        logger.info(
            "notification_read_state_set",
            user_id=str(user_id),
            notification_id=str(notification_id),
            is_read=is_read,
            updated=updated,
        )
        return updated

    async def bulk_read(self, user_id: UUID, request: BulkReadRequest) -> int:
        """Mark many notifications read.

        Returns:
            Number of rows that changed from unread to read.
        """
        await self.ensure_access(user_id)
        try:
            command = build_bulk_read_command(request)
        except NotificationValidationError as exc:
            logger.info("bulk_read_rejected", user_id=str(user_id), field=exc.field)
            raise

        updated = await self.notifications.bulk_read(user_id, command)
        logger.info(
            "notifications_bulk_read",
            user_id=str(user_id),
            all_unread=command.all_unread,
            requested=len(command.ids) if command.ids else None,
            updated=updated,
        )
        return updated

    async def hide(self, user_id: UUID, notification_id: UUID) -> bool:
        await self.ensure_access(user_id)
        hidden = await self.notifications.hide(user_id, notification_id)
        logger.info(
            "notification_hidden",
            user_id=str(user_id),
            notification_id=str(notification_id),
            updated=hidden,
        )
        return hidden

    async def stats(self, user_id: UUID) -> NotificationStats:
        await self.ensure_access(user_id)
        return await self.notifications.stats(user_id)

    async def ensure_access(self, user_id: UUID) -> None:
        if not await self.user_access.user_has_notification_access(user_id):
            logger.warning("notification_access_denied", user_id=str(user_id))
            raise NotificationAccessDenied(user_id)
