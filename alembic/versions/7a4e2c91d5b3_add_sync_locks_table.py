"""add sync locks table

Revision ID: 7a4e2c91d5b3
Revises: 3f1c9a7d2b10
Create Date: 2026-10-25 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "7a4e2c91d5b3"
down_revision = "3f1c9a7d2b10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sync_locks",
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("holder", sa.String(length=64), nullable=True),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    op.drop_table("sync_locks")
