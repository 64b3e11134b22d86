"""Keyset pagination over a user's visible notifications.

Rows are ordered by the composite key ``(user_notification.created_at,
user_notification.id)``, both descending or both ascending. The recipient
copy of the notification's creation time lets one per-user index serve the
scan. The id breaks timestamp ties so the order is strict and a page can
resume from the last row's key alone, without offsets:

* descending: ``created_at < c.created_at OR (created_at = c.created_at AND id < c.id)``
* ascending:  ``created_at > c.created_at OR (created_at = c.created_at AND id > c.id)``

where ``c`` is the row the cursor points at. A cursor that no longer resolves
to a visible row of the same user (hidden since, deleted, or someone else's)
imposes no bound at all and the page starts from the beginning.

Everything here builds SQLAlchemy constructs; executing them is the
repository's job.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import ColumnElement, Select, Text, and_, cast, or_, select

from inbox_api.models.notification import Notification, UserNotification
from inbox_api.query import MAX_LIMIT, MIN_LIMIT, ListQuery, Severity, SortOrder


class CursorPosition(NamedTuple):
    """Sort key of the row a cursor refers to."""

    created_at: datetime
    id: UUID


# Columns backing list items and the detail view.
ITEM_COLUMNS = (
    UserNotification.id.label("user_notification_id"),
    Notification.id.label("id"),
    Notification.title,
    Notification.message,
    Notification.category,
    Notification.notification_type.label("type"),
    Notification.severity,
    Notification.created_at,
    UserNotification.is_read,
    Notification.open_url,
    Notification.source_entity_type,
    Notification.source_entity_id,
    # Raw text so a malformed stored payload can be discarded per row.
    cast(Notification.payload, Text).label("payload"),
)


def clamp_limit(limit: int) -> int:
    """Force ``limit`` into the page-size bounds.

    Applied at the storage boundary regardless of upstream validation.
    """
    return max(MIN_LIMIT, min(MAX_LIMIT, limit))


def is_visible() -> ColumnElement[bool]:
    """Hidden rows are excluded from every read path."""
    return UserNotification.is_hidden.is_(False)


def visible_rows(user_id: UUID, *columns) -> Select:
    """Select ``columns`` over one user's non-hidden recipient rows."""
    return (
        select(*columns)
        .select_from(UserNotification)
        .join(Notification, Notification.id == UserNotification.notification_id)
        .where(UserNotification.user_id == user_id, is_visible())
    )


def content_predicates(
    *,
    category: str | None = None,
    severity: Severity | None = None,
    from_: datetime | None = None,
    to: datetime | None = None,
) -> list[ColumnElement[bool]]:
    """Filters on notification content; absent values add no constraint."""
    predicates: list[ColumnElement[bool]] = []
    if category is not None:
        predicates.append(Notification.category == category)
    if severity is not None:
        predicates.append(Notification.severity == severity.value)
    if from_ is not None:
        predicates.append(Notification.created_at >= from_)
    if to is not None:
        predicates.append(Notification.created_at <= to)
    return predicates


def list_predicates(query: ListQuery) -> list[ColumnElement[bool]]:
    """All active list filters, to be ANDed together."""
    predicates = content_predicates(
        category=query.category,
        severity=query.severity,
        from_=query.from_,
        to=query.to,
    )
    if query.unread_only:
        predicates.append(UserNotification.is_read.is_(False))
    if query.source_entity_type is not None:
        predicates.append(Notification.source_entity_type == query.source_entity_type)
    if query.source_entity_id is not None:
        predicates.append(Notification.source_entity_id == query.source_entity_id)
    return predicates


def cursor_position_statement(user_id: UUID, cursor: UUID) -> Select:
    """Look up the sort key of ``cursor`` among the user's visible rows."""
    return visible_rows(user_id, UserNotification.created_at, UserNotification.id).where(
        UserNotification.id == cursor
    )


def keyset_predicate(position: CursorPosition, sort: SortOrder) -> ColumnElement[bool]:
    """Rows strictly after ``position`` in ``sort`` order."""
    created_at = UserNotification.created_at
    row_id = UserNotification.id
    if sort.descending:
        return or_(
            created_at < position.created_at,
            and_(created_at == position.created_at, row_id < position.id),
        )
    return or_(
        created_at > position.created_at,
        and_(created_at == position.created_at, row_id > position.id),
    )


def keyset_order(sort: SortOrder) -> list[ColumnElement]:
    if sort.descending:
        return [UserNotification.created_at.desc(), UserNotification.id.desc()]
    return [UserNotification.created_at.asc(), UserNotification.id.asc()]


def build_page_statement(
    user_id: UUID,
    query: ListQuery,
    position: CursorPosition | None = None,
) -> Select:
    """Statement returning one page of list rows for ``query``."""
    statement = visible_rows(user_id, *ITEM_COLUMNS).where(*list_predicates(query))
    if position is not None:
        statement = statement.where(keyset_predicate(position, query.sort))
    return statement.order_by(*keyset_order(query.sort)).limit(clamp_limit(query.limit))


def next_cursor(user_notification_ids: Sequence[UUID]) -> UUID | None:
    """Cursor for the following page; ``None`` once a page comes back empty."""
    return user_notification_ids[-1] if user_notification_ids else None
