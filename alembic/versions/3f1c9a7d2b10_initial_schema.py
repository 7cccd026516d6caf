"""initial schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Enums ---
    userrole = sa.Enum("user", "admin", name="userrole")
    visibilityclass = sa.Enum("restricted", "public", name="visibilityclass")
    recipientpermission = sa.Enum(
        "view", "edit", "block_download", name="recipientpermission"
    )
    bind = op.get_bind()
    userrole.create(bind, checkfirst=True)
    visibilityclass.create(bind, checkfirst=True)
    recipientpermission.create(bind, checkfirst=True)

    # --- Tables with no FK dependencies ---
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("user", "admin", name="userrole", create_type=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "policies",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("max_duration_internal", sa.Integer(), nullable=False),
        sa.Column("max_duration_external", sa.Integer(), nullable=False),
        sa.Column("allow_public_sharing", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_policies_name"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # --- Tables depending on users ---
    op.create_table(
        "tracked_links",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("file_id", sa.String(length=64), nullable=False),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("file_path", sa.String(length=4000), nullable=False),
        sa.Column(
            "visibility",
            sa.Enum(
                "restricted", "public", name="visibilityclass", create_type=False
            ),
            nullable=False,
        ),
        sa.Column("link_url", sa.String(length=2048), nullable=False),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("link_url", name="uq_tracked_links_link_url"),
    )
    op.create_index("ix_tracked_links_owner_id", "tracked_links", ["owner_id"])
    op.create_index("ix_tracked_links_expires_at", "tracked_links", ["expires_at"])
    op.create_index("ix_tracked_links_created_at", "tracked_links", ["created_at"])

    op.create_table(
        "link_recipients",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("link_id", sa.UUID(), nullable=False),
        sa.Column("recipient", sa.String(length=320), nullable=False),
        sa.Column(
            "permission",
            sa.Enum(
                "view",
                "edit",
                "block_download",
                name="recipientpermission",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["link_id"], ["tracked_links.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "link_id", "recipient", name="uq_link_recipients_link_recipient"
        ),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])


def downgrade() -> None:
    op.drop_index("ix_notifications_is_read", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("link_recipients")
    op.drop_index("ix_tracked_links_created_at", table_name="tracked_links")
    op.drop_index("ix_tracked_links_expires_at", table_name="tracked_links")
    op.drop_index("ix_tracked_links_owner_id", table_name="tracked_links")
    op.drop_table("tracked_links")
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("policies")
    op.drop_table("users")

    for enum_name in ["recipientpermission", "visibilityclass", "userrole"]:
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
