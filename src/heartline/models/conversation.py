# src/heartline/models/conversation.py
"""Conversation channel between an unordered pair of users."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from heartline.core.errors import InvalidTransitionError
from heartline.db.session import Base
from heartline.db.time import utcnow


class ConversationState(str, enum.Enum):
    """Gate on a conversation.

    PENDING allows a single introduction per liker; ACTIVE is fully open.
    """

    PENDING = "pending"
    ACTIVE = "active"


# Only a confirmed match moves a conversation forward; nothing moves it back.
ALLOWED_TRANSITIONS: dict[ConversationState, frozenset[ConversationState]] = {
    ConversationState.PENDING: frozenset({ConversationState.ACTIVE}),
    ConversationState.ACTIVE: frozenset(),
}


class Conversation(Base):
    """Messaging channel keyed by the canonical (smaller, larger) user pair.

    Either slot becomes NULL when that user's account is deleted. A row with
    both slots NULL is never persisted: account deletion purges it first.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_conversations_pair"),
        CheckConstraint(
            "user_a_id IS NULL OR user_b_id IS NULL OR user_a_id < user_b_id",
            name="ck_conversations_canonical_pair",
        ),
        Index("ix_conversations_user_b_id", "user_b_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_a_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_b_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    state: Mapped[ConversationState] = mapped_column(
        Enum(
            ConversationState,
            name="conversation_state",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=ConversationState.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    @validates("state")
    def _validate_state(self, key: str, value: ConversationState) -> ConversationState:
        current = self.state
        if current is None or current == value:
            return value
        if value not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Conversation cannot move from {current.value} to {value.value}"
            )
        return value

    @property
    def is_locked(self) -> bool:
        """True while the pair has not matched."""
        return self.state == ConversationState.PENDING

    @property
    def participant_ids(self) -> tuple[uuid.UUID | None, uuid.UUID | None]:
        return (self.user_a_id, self.user_b_id)

    def has_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)

    def counterpart_of(self, user_id: uuid.UUID) -> uuid.UUID | None:
        """Return the other slot's user id (None when that user was deleted)."""
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id

    @property
    def present_count(self) -> int:
        return sum(1 for slot in self.participant_ids if slot is not None)
