"""Initial sales funnel schema: user accounts and funnel entries.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(bind, name: str) -> bool:
    return sa.inspect(bind).has_table(name)


def _has_index(bind, table_name: str, index_name: str) -> bool:
    indexes = sa.inspect(bind).get_indexes(table_name)
    return any(idx.get("name") == index_name for idx in indexes)


def upgrade() -> None:
    bind = op.get_bind()

    if not _has_table(bind, "user_account"):
        op.create_table(
            "user_account",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("username", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("location", sa.String(length=200), nullable=True),
            sa.Column("time", sa.DateTime(timezone=True), nullable=True),
            sa.Column("date", sa.Date(), nullable=True),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    if not _has_index(bind, "user_account", "ix_user_account_username"):
        op.create_index("ix_user_account_username", "user_account", ["username"], unique=True)
    if not _has_index(bind, "user_account", "ix_user_account_email"):
        op.create_index("ix_user_account_email", "user_account", ["email"], unique=True)

    if not _has_table(bind, "funnel_entry"):
        op.create_table(
            "funnel_entry",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("company_name", sa.String(length=300), nullable=False),
            sa.Column("contact_name", sa.String(length=200), nullable=False),
            sa.Column("contact_email", sa.String(length=255), nullable=False),
            sa.Column("stage", sa.String(length=50), nullable=False),
            sa.Column("value", sa.Float(), nullable=False),
            sa.Column("probability", sa.Float(), nullable=False),
            sa.Column("expected_revenue", sa.Float(), nullable=False),
            sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False),
            sa.Column("expected_close_date", sa.DateTime(timezone=True), nullable=False),
            sa.Column("team_member", sa.String(length=200), nullable=False),
            sa.Column("progress_to_won", sa.Float(), nullable=False),
            sa.Column("last_interacted_on", sa.DateTime(timezone=True), nullable=False),
            sa.Column("next_step", sa.Text(), nullable=False),
            sa.Column(
                "created_by",
                sa.Uuid(),
                sa.ForeignKey("user_account.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    if not _has_index(bind, "funnel_entry", "ix_funnel_entry_stage"):
        op.create_index("ix_funnel_entry_stage", "funnel_entry", ["stage"], unique=False)
    if not _has_index(bind, "funnel_entry", "ix_funnel_entry_created_by"):
        op.create_index("ix_funnel_entry_created_by", "funnel_entry", ["created_by"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    if _has_table(bind, "funnel_entry"):
        op.drop_table("funnel_entry")
    if _has_table(bind, "user_account"):
        op.drop_table("user_account")
