"""Notification content and per-recipient inbox state."""

import uuid

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from inbox_api.database import Base

SEVERITIES = ("info", "warning", "critical")


class Notification(Base):
    """Shared notification content, immutable once authored."""

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    message = Column(Text)
    category = Column(String)
    notification_type = Column("type", String)  # e.g., "deploy", "billing", "mention"
    severity = Column(String, nullable=False, server_default=text("'info'"))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    open_url = Column(Text)
    source_entity_type = Column(String)  # e.g., "invoice", "ticket"
    source_entity_id = Column(Uuid)
    payload = Column(JSONB().with_variant(JSON(), "sqlite"))

    __table_args__ = (
        CheckConstraint(
            "severity IN ('info', 'warning', 'critical')",
            name="ck_notifications_severity",
        ),
    )

    recipients = relationship("UserNotification", back_populates="notification")


class UserNotification(Base):
    """One recipient's read/hidden state for a notification.

    The row id is what list pagination hands out as its cursor.
    """

    __tablename__ = "user_notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_id = Column(
        Uuid,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_read = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    read_at = Column(TIMESTAMP(timezone=True))
    is_hidden = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    # Copy of notifications.created_at, written at delivery; the page sort key.
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "notification_id", name="uq_user_notifications_pair"),
        Index("idx_user_notifications_visible", user_id, is_hidden, notification_id),
        Index("idx_user_notifications_page", user_id, created_at.desc(), id.desc()),
        Index(
            "idx_user_notifications_unread",
            user_id,
            notification_id,
            postgresql_where=(is_read.is_(False) & is_hidden.is_(False)),
        ),
    )

    notification = relationship("Notification", back_populates="recipients")
    user = relationship("User", foreign_keys=[user_id])
