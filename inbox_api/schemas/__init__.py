"""Pydantic schemas for request/response validation."""

from inbox_api.schemas.notifications import (
    BulkReadFilters,
    BulkReadRequest,
    BulkReadResult,
    MarkReadRequest,
    NegotiateResponse,
    NotificationDetail,
    NotificationListItem,
    NotificationListRequest,
    NotificationListResponse,
    NotificationSource,
    NotificationStats,
)

__all__ = [
    "NotificationListRequest",
    "MarkReadRequest",
    "BulkReadFilters",
    "BulkReadRequest",
    "NotificationSource",
    "NotificationDetail",
    "NotificationListItem",
    "NotificationStats",
    "NotificationListResponse",
    "BulkReadResult",
    "NegotiateResponse",
]
