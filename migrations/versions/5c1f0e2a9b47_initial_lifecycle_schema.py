"""initial lifecycle schema

Revision ID: 5c1f0e2a9b47
Revises:
Create Date: 2026-10-17 09:12:41.503118

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1f0e2a9b47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

conversation_state = sa.Enum("pending", "active", name="conversation_state")


def upgrade() -> None:
    """Create users, swipes, conversations and messages."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    for table, actor, target, suffix in (
        ("user_likes", "liker_id", "liked_id", "liker_liked"),
        ("user_passes", "passer_id", "passed_id", "passer_passed"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column(actor, sa.Uuid(), nullable=False),
            sa.Column(target, sa.Uuid(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint([actor], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint([target], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(actor, target, name=f"uq_{table}_{suffix}"),
            sa.CheckConstraint(f"{actor} <> {target}", name=f"ck_{table}_not_self"),
        )
    op.create_index("ix_user_likes_liked_id", "user_likes", ["liked_id"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_a_id", sa.Uuid(), nullable=True),
        sa.Column("user_b_id", sa.Uuid(), nullable=True),
        sa.Column("state", conversation_state, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_a_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_b_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_a_id", "user_b_id", name="uq_conversations_pair"),
        sa.CheckConstraint(
            "user_a_id IS NULL OR user_b_id IS NULL OR user_a_id < user_b_id",
            name="ck_conversations_canonical_pair",
        ),
    )
    op.create_index("ix_conversations_user_b_id", "conversations", ["user_b_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_messages_conversation_created",
        "messages",
        ["conversation_id", "created_at"],
    )


def downgrade() -> None:
    """Drop the lifecycle schema."""
    op.drop_index("ix_messages_conversation_created", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_conversations_user_b_id", table_name="conversations")
    op.drop_table("conversations")
    op.drop_index("ix_user_likes_liked_id", table_name="user_likes")
    op.drop_table("user_passes")
    op.drop_table("user_likes")
    op.drop_table("users")
    conversation_state.drop(op.get_bind(), checkfirst=True)
