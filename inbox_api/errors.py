"""Typed failures raised by the notification service.

"Not found" is deliberately absent: a missing row is a normal outcome and is
reported through ``None``/``False`` return values instead of an exception.
"""

from uuid import UUID


class NotificationValidationError(ValueError):
    """Malformed or out-of-range request input, keyed by field name."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
        self.errors: dict[str, list[str]] = {field: [message]}


class NotificationAccessDenied(PermissionError):
    """The acting user is not entitled to use the notification inbox."""

    def __init__(self, user_id: UUID):
        super().__init__(f"User '{user_id}' is not permitted to access notifications.")
        self.user_id = user_id
