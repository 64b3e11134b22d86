"""Normalization of raw list and bulk-read parameters.

Raw request fields arrive possibly absent or malformed; the functions here turn
them into validated, immutable query values or raise
:class:`~inbox_api.errors.NotificationValidationError` for the first rule that
fails. Rules run in a fixed order (cursor, source entity id, limit, severity,
sort) so a request with several bad fields always reports the same one.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from inbox_api.errors import NotificationValidationError
from inbox_api.schemas.notifications import BulkReadRequest, NotificationListRequest

DEFAULT_LIMIT = 20
MIN_LIMIT = 1
MAX_LIMIT = 100

# Identifiers handed to clients (cursors, source entity ids) are opaque to
# them. Only parse_opaque_id knows their textual form.
OpaqueId = UUID


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SortOrder(str, Enum):
    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"

    @property
    def descending(self) -> bool:
        return self is SortOrder.CREATED_AT_DESC


SEVERITY_MESSAGE = "Severity must be one of info, warning, or critical."


@dataclass(frozen=True)
class ListQuery:
    """A validated list request, ready for the pagination engine."""

    cursor: OpaqueId | None = None
    limit: int = DEFAULT_LIMIT
    unread_only: bool = False
    severity: Severity | None = None
    category: str | None = None
    from_: datetime | None = None
    to: datetime | None = None
    source_entity_type: str | None = None
    source_entity_id: OpaqueId | None = None
    sort: SortOrder = SortOrder.CREATED_AT_DESC


@dataclass(frozen=True)
class BulkReadCommand:
    """A validated bulk-read request.

    Exactly one mode is set: ``ids`` for an explicit set of notification ids,
    or ``all_unread`` with the optional filter subset.
    """

    ids: tuple[OpaqueId, ...] | None = None
    all_unread: bool = False
    category: str | None = None
    severity: Severity | None = None
    from_: datetime | None = None
    to: datetime | None = None


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_opaque_id(raw: str, *, field: str, label: str) -> OpaqueId:
    """Parse a client-supplied identifier or fail on ``field``."""
    try:
        return UUID(raw.strip())
    except ValueError:
        raise NotificationValidationError(field, f"{label} must be a valid UUID.") from None


def parse_severity(raw: str | None, *, field: str = "severity") -> Severity | None:
    """Case-insensitively match ``raw`` against the fixed severity set."""
    if _blank(raw):
        return None
    try:
        return Severity(raw.lower())
    except ValueError:
        raise NotificationValidationError(field, SEVERITY_MESSAGE) from None


def parse_sort(raw: str | None) -> SortOrder:
    if _blank(raw):
        return SortOrder.CREATED_AT_DESC
    try:
        return SortOrder(raw.lower())
    except ValueError:
        raise NotificationValidationError(
            "sort", "Sort must be created_at_desc or created_at_asc."
        ) from None


def build_list_query(request: NotificationListRequest) -> ListQuery:
    """Validate a raw list request into a :class:`ListQuery`.

    Raises:
        NotificationValidationError: on the first violated rule.
    """
    cursor = None
    if not _blank(request.cursor):
        cursor = parse_opaque_id(request.cursor, field="cursor", label="Cursor")

    source_entity_id = None
    if not _blank(request.source_entity_id):
        source_entity_id = parse_opaque_id(
            request.source_entity_id, field="source_entity_id", label="Source entity id"
        )

    limit = DEFAULT_LIMIT if request.limit is None else request.limit
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise NotificationValidationError(
            "limit", f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}."
        )

    severity = parse_severity(request.severity)
    sort = parse_sort(request.sort)

    return ListQuery(
        cursor=cursor,
        limit=limit,
        unread_only=bool(request.unread_only),
        severity=severity,
        category=request.category,
        from_=request.from_,
        to=request.to,
        source_entity_type=request.source_entity_type,
        source_entity_id=source_entity_id,
        sort=sort,
    )


def build_bulk_read_command(request: BulkReadRequest) -> BulkReadCommand:
    """Validate a raw bulk-read request into a :class:`BulkReadCommand`.

    Explicit ids are deduplicated (first occurrence wins) and the nil UUID is
    dropped. Filters only apply to ``all_unread`` mode and are ignored
    otherwise.
    """
    ids = None
    if request.ids is not None:
        ids = tuple(dict.fromkeys(i for i in request.ids if i.int != 0))

    if request.all_unread and request.ids:
        raise NotificationValidationError(
            "ids", "Provide either notification ids or all_unread, not both."
        )
    if not request.all_unread and not ids:
        raise NotificationValidationError(
            "ids", "Provide at least one notification id or set all_unread to true."
        )

    if not request.all_unread:
        return BulkReadCommand(ids=ids)

    filters = request.filters
    if filters is None:
        return BulkReadCommand(all_unread=True)

    return BulkReadCommand(
        all_unread=True,
        category=filters.category,
        severity=parse_severity(filters.severity, field="filters.severity"),
        from_=filters.from_,
        to=filters.to,
    )
