"""chat tables

Revision ID: 5c2e91a0d7b4
Revises:
Create Date: 2026-10-18 09:12:41.380512

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c2e91a0d7b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create participant and chat_message tables."""
    op.create_table(
        "participant",
        sa.Column("id", sa.String(length=320), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "chat_message",
        sa.Column("seq", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("client_id", sa.String(length=32), nullable=True),
        sa.Column("conversation_id", sa.String(length=80), nullable=False),
        sa.Column("mode", sa.String(length=16), nullable=False),
        sa.Column("sender_id", sa.String(length=320), nullable=False),
        sa.Column("sender_display_name", sa.Text(), nullable=False),
        sa.Column("sender_avatar", sa.Text(), nullable=False),
        sa.Column("recipient_id", sa.String(length=320), nullable=True),
        sa.Column("recipient_display_name", sa.Text(), nullable=True),
        sa.Column("ciphertext", sa.Text(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("seq"),
        sa.UniqueConstraint("id"),
        sa.UniqueConstraint(
            "conversation_id", "sender_id", "client_id", name="uq_chat_message_client_id"
        ),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_chat_message_conversation_order",
        "chat_message",
        ["conversation_id", "created_at", "seq"],
    )


def downgrade() -> None:
    """Drop chat tables."""
    op.drop_index("ix_chat_message_conversation_order", table_name="chat_message")
    op.drop_table("chat_message")
    op.drop_table("participant")
