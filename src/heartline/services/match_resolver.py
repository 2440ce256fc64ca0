"""Mutual-like detection and the pending-to-active conversation transition.

A match is never stored: it is the condition Like(A->B) and Like(B->A).
``MatchResolver`` is the only caller of ``ConversationStore.set_locked``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, select
from sqlalchemy.orm import Session, aliased

from heartline.models import Conversation, Like, User
from heartline.services.conversation_store import ConversationStore, canonical_pair

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Outcome of a reciprocal like."""

    conversation: Conversation
    created: bool
    unlocked: bool

    @property
    def is_new(self) -> bool:
        return self.created or self.unlocked


def lock_pair(db: Session, user_x: uuid.UUID, user_y: uuid.UUID) -> dict[uuid.UUID, User]:
    """Row-lock both users in canonical order and return them by id.

    Any like written for the pair after this call is serialized against a
    concurrent like in the other direction, so the later transaction always
    sees the earlier like when it checks reciprocity.
    """
    user_a, user_b = canonical_pair(user_x, user_y)
    rows = db.scalars(
        select(User)
        .where(User.id.in_([user_a, user_b]))
        .order_by(User.id)
        .with_for_update()
    ).all()
    return {user.id: user for user in rows}


class MatchResolver:
    """Turns a pair of reciprocal likes into exactly one open conversation."""

    def __init__(self, db: Session, conversations: ConversationStore | None = None) -> None:
        self.db = db
        self.conversations = conversations or ConversationStore(db)

    def _has_like(self, liker_id: uuid.UUID, liked_id: uuid.UUID) -> bool:
        return (
            self.db.scalar(
                select(Like.id).where(Like.liker_id == liker_id, Like.liked_id == liked_id)
            )
            is not None
        )

    def is_match(self, user_x: uuid.UUID, user_y: uuid.UUID) -> bool:
        return self._has_like(user_x, user_y) and self._has_like(user_y, user_x)

    def resolve(self, liker_id: uuid.UUID, liked_id: uuid.UUID) -> MatchResult | None:
        """Evaluate reciprocity right after Like(liker -> liked) was flushed.

        Must run inside the same transaction as the like insert, after
        ``lock_pair``. Returns None when the other direction does not exist.
        """
        if not self._has_like(liked_id, liker_id):
            return None

        conversation, created = self.conversations.find_or_create(
            liker_id,
            liked_id,
            initial_locked=False,
            for_update=True,
        )
        unlocked = False if created else self.conversations.set_locked(conversation, False)

        if created or unlocked:
            logger.info(
                "Match confirmed",
                extra={
                    "user_id": liker_id,
                    "target_id": liked_id,
                    "conversation_id": conversation.id,
                },
            )
        return MatchResult(conversation=conversation, created=created, unlocked=unlocked)

    def list_matches(self, user_id: uuid.UUID) -> list[tuple[User, Conversation | None]]:
        """Users who like ``user_id`` back, with the pair's conversation."""
        mine = aliased(Like)
        theirs = aliased(Like)
        partners = self.db.scalars(
            select(User)
            .join(mine, and_(mine.liked_id == User.id, mine.liker_id == user_id))
            .join(theirs, and_(theirs.liker_id == User.id, theirs.liked_id == user_id))
            .order_by(mine.created_at.desc())
        ).all()
        return [(partner, self.conversations.find(user_id, partner.id)) for partner in partners]
