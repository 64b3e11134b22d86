"""Notification inbox schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261018_01_inbox"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.Uuid(),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "notifications",
        sa.Column(
            "id",
            sa.Uuid(),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column(
            "severity",
            sa.String(),
            nullable=False,
            server_default=sa.text("'info'"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("open_url", sa.Text(), nullable=True),
        sa.Column("source_entity_type", sa.String(), nullable=True),
        sa.Column("source_entity_id", sa.Uuid(), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=True),
        sa.CheckConstraint(
            "severity IN ('info', 'warning', 'critical')",
            name="ck_notifications_severity",
        ),
    )

    op.create_table(
        "user_notifications",
        sa.Column(
            "id",
            sa.Uuid(),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "notification_id",
            sa.Uuid(),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "is_read",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("read_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "is_hidden",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint(
            "user_id", "notification_id", name="uq_user_notifications_pair"
        ),
    )

    op.create_index(
        "idx_user_notifications_visible",
        "user_notifications",
        ["user_id", "is_hidden", "notification_id"],
    )
    op.execute(
        "CREATE INDEX idx_user_notifications_page "
        "ON user_notifications (user_id, created_at DESC, id DESC)"
    )
    op.execute(
        """
        CREATE INDEX idx_user_notifications_unread
        ON user_notifications (user_id, notification_id)
        WHERE is_read = false AND is_hidden = false
        """
    )

    # Recipient rows sort by their notification's creation time, whoever inserts them.
    op.execute(
        """
        CREATE FUNCTION user_notifications_copy_created_at() RETURNS trigger AS $$
        BEGIN
            SELECT n.created_at INTO NEW.created_at
            FROM notifications n
            WHERE n.id = NEW.notification_id;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_user_notifications_created_at
        BEFORE INSERT ON user_notifications
        FOR EACH ROW EXECUTE FUNCTION user_notifications_copy_created_at()
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_user_notifications_created_at ON user_notifications")
    op.execute("DROP FUNCTION IF EXISTS user_notifications_copy_created_at()")
    op.execute("DROP INDEX IF EXISTS idx_user_notifications_page")
    op.execute("DROP INDEX IF EXISTS idx_user_notifications_unread")
    op.drop_index("idx_user_notifications_visible", table_name="user_notifications")
    op.drop_table("user_notifications")

    op.drop_table("notifications")

    op.drop_table("users")

    op.execute("DROP EXTENSION IF EXISTS pgcrypto")
