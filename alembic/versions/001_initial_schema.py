"""Initial schema — users and messages.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("nickname", sa.String(24), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column(
            "banned", sa.Boolean, nullable=False, server_default=sa.false(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_nickname", "users", ["nickname"], unique=True)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("nickname", sa.String(24), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_messages_nickname", "messages", ["nickname"])


def downgrade() -> None:
    op.drop_index("ix_messages_nickname", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_users_nickname", table_name="users")
    op.drop_table("users")
