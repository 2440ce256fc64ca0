"""Directed like and pass edges between users.

Likes and passes are independent logs: a pass never retracts a like and
never blocks a later one. Every like insert runs under the pair lock taken
by ``lock_pair`` so the reciprocity check in ``MatchResolver`` cannot miss a
concurrent like in the other direction.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from heartline.core.errors import ConflictError, NotFoundError, ValidationError
from heartline.models import Conversation, Like, Message, Pass, User
from heartline.services.conversation_store import ConversationStore, canonical_pair
from heartline.services.match_resolver import MatchResolver, MatchResult, lock_pair
from heartline.services.sanitizer import require_uuid

logger = logging.getLogger(__name__)

TARGET_NOT_FOUND = "User not found or not verified"


@dataclass
class LikeOutcome:
    """A freshly recorded like and the match it produced, if any."""

    like: Like
    match: MatchResult | None


@dataclass
class LikedProfile:
    """An entry in the liker's "people I liked" list."""

    user: User
    liked_at: datetime
    has_intro: bool


class LikeRegistry:
    """Records, removes and queries likes and passes for one session."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversations = ConversationStore(db)
        self.matches = MatchResolver(db, self.conversations)

    def _verified_target(self, target_id: uuid.UUID, locked: dict[uuid.UUID, User]) -> User:
        target = locked.get(target_id)
        if target is None or not target.verified:
            raise NotFoundError(TARGET_NOT_FOUND)
        return target

    def _insert(self, row: Like | Pass, conflict_message: str) -> None:
        try:
            with self.db.begin_nested():
                self.db.add(row)
                self.db.flush()
        except IntegrityError as exc:
            raise ConflictError(conflict_message) from exc

    def check_exists(self, liker_id: uuid.UUID, liked_id: uuid.UUID) -> bool:
        return (
            self.db.scalar(
                select(Like.id).where(Like.liker_id == liker_id, Like.liked_id == liked_id)
            )
            is not None
        )

    def has_passed(self, passer_id: uuid.UUID, passed_id: uuid.UUID) -> bool:
        return (
            self.db.scalar(
                select(Pass.id).where(Pass.passer_id == passer_id, Pass.passed_id == passed_id)
            )
            is not None
        )

    def record_like(self, liker_id: uuid.UUID, liked_id: object) -> LikeOutcome:
        """Store Like(liker -> liked) and resolve a match in the same transaction.

        Raises:
            ValidationError: missing, malformed or self-targeted id.
            NotFoundError: the target is unknown or unverified.
            ConflictError: the like already exists.
        """
        target_id = require_uuid(liked_id, missing="likedId is required")
        if target_id == liker_id:
            raise ValidationError("Cannot like yourself")

        try:
            self._verified_target(target_id, lock_pair(self.db, liker_id, target_id))
            if self.check_exists(liker_id, target_id):
                raise ConflictError("User already liked")

            like = Like(liker_id=liker_id, liked_id=target_id)
            self._insert(like, "User already liked")
            match = self.matches.resolve(liker_id, target_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("User liked", extra={"user_id": liker_id, "target_id": target_id})
        return LikeOutcome(like=like, match=match)

    def remove_like(self, liker_id: uuid.UUID, liked_id: object) -> None:
        """Delete Like(liker -> liked). An active conversation stays active."""
        target_id = require_uuid(liked_id)
        like = self.db.scalars(
            select(Like).where(Like.liker_id == liker_id, Like.liked_id == target_id)
        ).first()
        if like is None:
            raise NotFoundError("Like not found")

        self.db.delete(like)
        self.db.commit()
        logger.info("User unliked", extra={"user_id": liker_id, "target_id": target_id})

    def record_pass(self, passer_id: uuid.UUID, passed_id: object) -> Pass:
        target_id = require_uuid(passed_id, missing="passedId is required")
        if target_id == passer_id:
            raise ValidationError("Cannot pass on yourself")

        try:
            self._verified_target(target_id, lock_pair(self.db, passer_id, target_id))
            if self.has_passed(passer_id, target_id):
                raise ConflictError("User already passed")

            user_pass = Pass(passer_id=passer_id, passed_id=target_id)
            self._insert(user_pass, "User already passed")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("User passed", extra={"user_id": passer_id, "target_id": target_id})
        return user_pass

    def remove_pass(self, passer_id: uuid.UUID, passed_id: object) -> None:
        target_id = require_uuid(passed_id)
        user_pass = self.db.scalars(
            select(Pass).where(Pass.passer_id == passer_id, Pass.passed_id == target_id)
        ).first()
        if user_pass is None:
            raise NotFoundError("Pass not found")

        self.db.delete(user_pass)
        self.db.commit()
        logger.info("User unpassed", extra={"user_id": passer_id, "target_id": target_id})

    def _intro_sent(self, liker_id: uuid.UUID, liked_id: uuid.UUID) -> bool:
        user_a, user_b = canonical_pair(liker_id, liked_id)
        intro = self.db.scalar(
            select(Message.id)
            .join(Conversation, Conversation.id == Message.conversation_id)
            .where(
                Conversation.user_a_id == user_a,
                Conversation.user_b_id == user_b,
                Message.sender_id == liker_id,
            )
            .limit(1)
        )
        return intro is not None

    def list_liked(self, liker_id: uuid.UUID) -> list[LikedProfile]:
        """Profiles the user has liked, newest first, flagged with ``has_intro``."""
        rows = self.db.execute(
            select(User, Like.created_at)
            .join(Like, Like.liked_id == User.id)
            .where(Like.liker_id == liker_id)
            .order_by(Like.created_at.desc())
        ).all()
        return [
            LikedProfile(user=user, liked_at=liked_at, has_intro=self._intro_sent(liker_id, user.id))
            for user, liked_at in rows
        ]

    def list_pending_intro(self, liker_id: uuid.UUID) -> list[LikedProfile]:
        """Liked users that have neither liked back nor received an introduction."""
        reciprocal = aliased(Like)
        rows = self.db.execute(
            select(User, Like.created_at)
            .join(Like, Like.liked_id == User.id)
            .outerjoin(
                reciprocal,
                and_(reciprocal.liker_id == User.id, reciprocal.liked_id == liker_id),
            )
            .where(Like.liker_id == liker_id, reciprocal.id.is_(None))
            .order_by(Like.created_at.desc())
        ).all()
        return [
            LikedProfile(user=user, liked_at=liked_at, has_intro=False)
            for user, liked_at in rows
            if not self._intro_sent(liker_id, user.id)
        ]
