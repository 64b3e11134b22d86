"""Persistence operations over a user's notification inbox."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Row, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inbox_api.models.notification import Notification, UserNotification
from inbox_api.pagination import (
    ITEM_COLUMNS,
    CursorPosition,
    build_page_statement,
    content_predicates,
    cursor_position_statement,
    is_visible,
    next_cursor,
    visible_rows,
)
from inbox_api.query import BulkReadCommand, ListQuery
from inbox_api.schemas.notifications import (
    NotificationDetail,
    NotificationListItem,
    NotificationListResponse,
    NotificationSource,
    NotificationStats,
)
from inbox_api.stats import collect_counts

logger = structlog.get_logger(__name__)


class NotificationRepository:
    """Read and mutate per-user notification state.

    Every mutation is a single UPDATE statement committed on its own, so a
    cancelled call never leaves a partial change behind. Misses are reported
    as ``None``/``False``/``0``, never raised.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list(self, user_id: UUID, query: ListQuery) -> NotificationListResponse:
        position = None
        if query.cursor is not None:
            position = await self._resolve_cursor(user_id, query.cursor)

        result = await self.session.execute(build_page_statement(user_id, query, position))
        items = [self._to_list_item(row) for row in result.all()]
        stats = await self.stats(user_id)

        return NotificationListResponse(
            items=items,
            next_cursor=next_cursor([item.user_notification_id for item in items]),
            stats=stats,
        )

    async def get(self, user_id: UUID, notification_id: UUID) -> NotificationDetail | None:
        result = await self.session.execute(
            visible_rows(user_id, *ITEM_COLUMNS).where(Notification.id == notification_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return NotificationDetail(**self._item_fields(row))

    async def mark_read(self, user_id: UUID, notification_id: UUID, is_read: bool) -> bool:
        """Set the read flag for one pair.

        Marking read keeps an existing ``read_at``; marking unread clears it.
        """
        if is_read:
            now = datetime.now(timezone.utc)
            values: dict[str, Any] = {
                "is_read": True,
                "read_at": func.coalesce(UserNotification.read_at, now),
            }
        else:
            values = {"is_read": False, "read_at": None}

        updated = await self._update(
            update(UserNotification)
            .where(
                UserNotification.user_id == user_id,
                UserNotification.notification_id == notification_id,
            )
            .values(**values)
        )
        return updated > 0

    async def bulk_read(self, user_id: UUID, command: BulkReadCommand) -> int:
        """Mark unread rows read; returns how many actually transitioned."""
        now = datetime.now(timezone.utc)
        statement = update(UserNotification).where(
            UserNotification.user_id == user_id,
            UserNotification.is_read.is_(False),
        )

        if command.all_unread:
            statement = statement.where(is_visible())
            predicates = content_predicates(
                category=command.category,
                severity=command.severity,
                from_=command.from_,
                to=command.to,
            )
            if predicates:
                statement = statement.where(
                    UserNotification.notification_id.in_(
                        select(Notification.id).where(*predicates)
                    )
                )
        else:
            if not command.ids:
                return 0
            statement = statement.where(UserNotification.notification_id.in_(command.ids))

        return await self._update(statement.values(is_read=True, read_at=now))

    async def hide(self, user_id: UUID, notification_id: UUID) -> bool:
        updated = await self._update(
            update(UserNotification)
            .where(
                UserNotification.user_id == user_id,
                UserNotification.notification_id == notification_id,
                is_visible(),
            )
            .values(is_hidden=True)
        )
        return updated > 0

    async def stats(self, user_id: UUID) -> NotificationStats:
        unread = UserNotification.is_read.is_(False)

        total = await self.session.scalar(visible_rows(user_id, func.count()).where(unread))
        by_category = await self.session.execute(
            visible_rows(user_id, Notification.category, func.count())
            .where(unread)
            .group_by(Notification.category)
        )
        by_severity = await self.session.execute(
            visible_rows(user_id, Notification.severity, func.count())
            .where(unread)
            .group_by(Notification.severity)
        )

        return NotificationStats(
            unread_total=total or 0,
            by_category=collect_counts(tuple(row) for row in by_category.all()),
            by_severity=collect_counts(tuple(row) for row in by_severity.all()),
        )

    # --- Helpers ---

    async def _resolve_cursor(self, user_id: UUID, cursor: UUID) -> CursorPosition | None:
        result = await self.session.execute(cursor_position_statement(user_id, cursor))
        row = result.one_or_none()
        if row is None:
            logger.info("stale_cursor_ignored", user_id=str(user_id), cursor=str(cursor))
            return None
        return CursorPosition(created_at=row[0], id=row[1])

    async def _update(self, statement) -> int:
        result = await self.session.execute(
            statement.returning(UserNotification.id).execution_options(
                synchronize_session=False
            )
        )
        updated = len(result.scalars().all())
        await self.session.commit()
        return updated

    @classmethod
    def _to_list_item(cls, row: Row) -> NotificationListItem:
        return NotificationListItem(
            user_notification_id=row.user_notification_id,
            **cls._item_fields(row),
        )

    @classmethod
    def _item_fields(cls, row: Row) -> dict[str, Any]:
        source = None
        if row.source_entity_type or row.source_entity_id is not None:
            source = NotificationSource(type=row.source_entity_type, id=row.source_entity_id)

        return {
            "id": row.id,
            "title": row.title,
            "message": row.message,
            "category": row.category,
            "type": row.type,
            "severity": row.severity,
            "created_at": row.created_at,
            "is_read": row.is_read,
            "open_url": row.open_url,
            "source": source,
            "payload": cls._parse_payload(row.payload, notification_id=row.id),
        }

    @staticmethod
    def _parse_payload(raw: str | None, *, notification_id: UUID) -> Any:
        """Decode the stored payload; anything unparseable reads as absent."""
        if raw is None or not raw.strip():
            return None
        try:
            return json.loads(raw)
        # Valid JSON nested deeper than the decoder's recursion limit counts too.
        except (ValueError, RecursionError):
            logger.warning("malformed_payload_ignored", notification_id=str(notification_id))
            return None


__all__ = ["NotificationRepository"]
