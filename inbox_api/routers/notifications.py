"""Notification inbox router."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from inbox_api.auth.dependencies import get_current_user_id
from inbox_api.config import settings
from inbox_api.database import get_db
from inbox_api.middleware.rate_limit import limiter
from inbox_api.schemas.notifications import (
    BulkReadRequest,
    BulkReadResult,
    MarkReadRequest,
    NegotiateResponse,
    NotificationDetail,
    NotificationListRequest,
    NotificationListResponse,
    NotificationStats,
)
from inbox_api.services.notifications import NotificationService

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService.for_session(db)


def _not_found(notification_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": {
                "code": "NOT_FOUND",
                "message": f"Notification '{notification_id}' not found",
            }
        },
    )


# --- List Notifications ---


@router.get(
    "",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_notifications(
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    limit: int | None = Query(default=None, description="Items per page (1-100)"),
    unread_only: bool | None = Query(default=None, description="Show only unread notifications"),
    severity: str | None = Query(default=None, description="info, warning or critical"),
    category: str | None = Query(default=None),
    from_: datetime | None = Query(default=None, alias="from", description="Created at or after"),
    to: datetime | None = Query(default=None, description="Created at or before"),
    source_entity_type: str | None = Query(default=None),
    source_entity_id: str | None = Query(default=None),
    sort: str | None = Query(default=None, description="created_at_desc or created_at_asc"),
) -> NotificationListResponse:
    """
    List notifications with keyset pagination.

    Pass the returned ``next_cursor`` back as ``cursor`` to fetch the next
    page; a ``null`` cursor means there is nothing further.
    """
    request = NotificationListRequest(
        cursor=cursor,
        limit=limit,
        unread_only=unread_only,
        severity=severity,
        category=category,
        from_=from_,
        to=to,
        source_entity_type=source_entity_type,
        source_entity_id=source_entity_id,
        sort=sort,
    )
    return await service.list(user_id, request)


# --- Stats ---


@router.get(
    "/stats",
    response_model=NotificationStats,
    status_code=status.HTTP_200_OK,
)
async def get_notification_stats(
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationStats:
    """Unread totals by category and severity."""
    return await service.stats(user_id)


# --- Real-time Negotiation ---


@router.get(
    "/negotiate",
    response_model=NegotiateResponse,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(settings.negotiate_rate_limit)
async def negotiate(request: Request) -> NegotiateResponse:  # noqa: ARG001
    """Connection parameters for the real-time channel. No authentication."""
    return NegotiateResponse(
        url=settings.realtime_url,
        access_token=settings.realtime_access_token,
        expires_in=settings.realtime_expires_in,
    )


# --- Bulk Read ---


@router.post(
    "/bulk-read",
    response_model=BulkReadResult,
    status_code=status.HTTP_200_OK,
)
async def bulk_read_notifications(
    data: BulkReadRequest,
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
) -> BulkReadResult:
    """Mark the given notifications, or all unread ones, as read."""
    updated = await service.bulk_read(user_id, data)
    return BulkReadResult(updated=updated)


# --- Single Notification ---


@router.get(
    "/{notification_id}",
    response_model=NotificationDetail,
    status_code=status.HTTP_200_OK,
)
async def get_notification(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationDetail:
    """Fetch one notification unless it is hidden."""
    detail = await service.get(user_id, notification_id)
    if detail is None:
        raise _not_found(notification_id)
    return detail


@router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def mark_notification_read(
    notification_id: UUID,
    data: MarkReadRequest,
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
) -> Response:
    """Set or clear the read flag."""
    if not await service.mark_read(user_id, notification_id, data.is_read):
        raise _not_found(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{notification_id}/hide",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def hide_notification(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service),
    user_id: UUID = Depends(get_current_user_id),
) -> Response:
    """Hide a notification from every inbox view. There is no unhide."""
    if not await service.hide(user_id, notification_id):
        raise _not_found(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
