"""Conversation persistence keyed by an unordered user pair."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from heartline.core.errors import InvalidTransitionError, NotFoundError
from heartline.db.time import utcnow
from heartline.models import Conversation, ConversationState, Message, User

logger = logging.getLogger(__name__)

HIDDEN_USER_NAME = "Hidden User"
DELETED_USER_NAME = "Deleted User"


def canonical_pair(user_x: uuid.UUID, user_y: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Return ``(smaller, larger)`` so (X, Y) and (Y, X) address the same row."""
    return (user_x, user_y) if user_x < user_y else (user_y, user_x)


def public_profile(user: User) -> dict[str, Any]:
    return {"id": str(user.id), "name": user.name, "avatarUrl": user.avatar_url}


def sanitized_counterpart(conversation: Conversation, other: User | None) -> dict[str, Any]:
    """Public view of the other participant.

    Deleted counterparts and locked conversations get placeholders without an id.
    """
    if other is None:
        return {"name": DELETED_USER_NAME, "avatarUrl": None}
    if conversation.is_locked:
        return {"name": HIDDEN_USER_NAME, "avatarUrl": None}
    return public_profile(other)


@dataclass
class ConversationSummary:
    """A conversation annotated for the requesting user's inbox."""

    conversation: Conversation
    last_message: Message | None
    other_user: dict[str, Any]


class ConversationStore:
    """Owns conversation rows and their lock state."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _pair_query(self, user_a: uuid.UUID, user_b: uuid.UUID, *, for_update: bool):
        stmt = select(Conversation).where(
            Conversation.user_a_id == user_a,
            Conversation.user_b_id == user_b,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return stmt

    def find(self, user_x: uuid.UUID, user_y: uuid.UUID, *, for_update: bool = False) -> Conversation | None:
        """Return the pair's conversation, if any."""
        user_a, user_b = canonical_pair(user_x, user_y)
        return self.db.scalars(self._pair_query(user_a, user_b, for_update=for_update)).first()

    def find_or_create(
        self,
        user_x: uuid.UUID,
        user_y: uuid.UUID,
        *,
        initial_locked: bool,
        for_update: bool = False,
    ) -> tuple[Conversation, bool]:
        """Return ``(conversation, created)`` for the unordered pair.

        An existing row is returned untouched. A concurrent insert of the same
        pair loses on the unique constraint inside a savepoint and falls back
        to the winner's row.
        """
        existing = self.find(user_x, user_y, for_update=for_update)
        if existing is not None:
            return existing, False

        user_a, user_b = canonical_pair(user_x, user_y)
        conversation = Conversation(
            user_a_id=user_a,
            user_b_id=user_b,
            state=ConversationState.PENDING if initial_locked else ConversationState.ACTIVE,
        )
        try:
            with self.db.begin_nested():
                self.db.add(conversation)
                self.db.flush()
        except IntegrityError:
            logger.info(
                "Conversation for pair created concurrently; reusing existing row",
                extra={"user_id": user_x, "target_id": user_y},
            )
            winner = self.find(user_x, user_y, for_update=for_update)
            if winner is None:
                raise
            return winner, False

        logger.info(
            "Created %s conversation",
            conversation.state.value,
            extra={"conversation_id": conversation.id},
        )
        return conversation, True

    def set_locked(self, conversation: Conversation, locked: bool) -> bool:
        """Move the conversation's lock state.

        Returns True when the state changed, False when it already matched.
        Raises ``InvalidTransitionError`` for any transition other than
        pending to active.
        """
        target = ConversationState.PENDING if locked else ConversationState.ACTIVE
        if conversation.state == target:
            return False
        try:
            conversation.state = target
        except InvalidTransitionError:
            logger.error(
                "Rejected lock transition to %s",
                target.value,
                extra={"conversation_id": conversation.id},
            )
            raise
        self.db.flush()
        return True

    def get(self, conversation_id: uuid.UUID, *, for_update: bool = False) -> Conversation:
        """Fetch by id or raise ``NotFoundError``."""
        stmt = select(Conversation).where(Conversation.id == conversation_id)
        if for_update:
            stmt = stmt.with_for_update()
        conversation = self.db.scalars(stmt).first()
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    def touch(self, conversation: Conversation) -> None:
        """Bump ``updated_at`` so the conversation sorts to the top of inboxes."""
        conversation.updated_at = utcnow()

    def latest_message(self, conversation_id: uuid.UUID) -> Message | None:
        return self.db.scalars(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())
            .limit(1)
        ).first()

    def list_for_user(self, user_id: uuid.UUID) -> list[ConversationSummary]:
        """Conversations where the user holds either slot, most recent first."""
        conversations = self.db.scalars(
            select(Conversation)
            .where(or_(Conversation.user_a_id == user_id, Conversation.user_b_id == user_id))
            .order_by(Conversation.updated_at.desc())
        ).all()

        summaries: list[ConversationSummary] = []
        for conversation in conversations:
            other_id = conversation.counterpart_of(user_id)
            other = self.db.get(User, other_id) if other_id is not None else None
            summaries.append(
                ConversationSummary(
                    conversation=conversation,
                    last_message=self.latest_message(conversation.id),
                    other_user=sanitized_counterpart(conversation, other),
                )
            )
        return summaries
