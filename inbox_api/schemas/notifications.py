"""Notification inbox Pydantic schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# --- Requests ---


class NotificationListRequest(BaseModel):
    """Raw list parameters, validated later by ``build_list_query``."""

    model_config = ConfigDict(populate_by_name=True)

    cursor: str | None = None
    limit: int | None = None
    unread_only: bool | None = None
    severity: str | None = None
    category: str | None = None
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None
    source_entity_type: str | None = None
    source_entity_id: str | None = None
    sort: str | None = None


class MarkReadRequest(BaseModel):
    """Request body for setting the read flag."""

    is_read: bool


class BulkReadFilters(BaseModel):
    """Optional narrowing for all-unread bulk reads."""

    model_config = ConfigDict(populate_by_name=True)

    category: str | None = None
    severity: str | None = None
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None


class BulkReadRequest(BaseModel):
    """Request body for bulk-read: explicit ids or all unread."""

    ids: list[UUID] | None = None
    all_unread: bool = False
    filters: BulkReadFilters | None = None


# --- Responses ---


class NotificationSource(BaseModel):
    """Entity that caused the notification."""

    type: str | None
    id: UUID | None


class NotificationDetail(BaseModel):
    """Single notification as seen by one recipient."""

    id: UUID
    title: str
    message: str | None = None
    category: str | None = None
    type: str | None = None
    severity: str
    created_at: datetime
    is_read: bool
    open_url: str | None = None
    source: NotificationSource | None = None
    payload: Any = None


class NotificationListItem(NotificationDetail):
    """List entry; carries the recipient row id used as the page cursor."""

    user_notification_id: UUID = Field(exclude=True)


class NotificationStats(BaseModel):
    """Unread counters for non-hidden notifications."""

    unread_total: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)


class NotificationListResponse(BaseModel):
    """Response for listing notifications."""

    items: list[NotificationListItem]
    next_cursor: UUID | None
    stats: NotificationStats


class BulkReadResult(BaseModel):
    """Response for bulk-read: rows that actually changed to read."""

    updated: int


class NegotiateResponse(BaseModel):
    """Connection parameters for the real-time channel."""

    url: str
    access_token: str
    expires_in: int
