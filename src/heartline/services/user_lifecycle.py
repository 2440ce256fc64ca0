"""Account deletion and its effect on shared conversations.

Deletion keeps a conversation while one participant remains, so the survivor
still sees the history with a "Deleted User" counterpart. Once nobody is left
the conversation and its messages are purged. The database foreign keys do
the rest: conversation slots and message senders are set to NULL, likes and
passes cascade away.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, delete, inspect, or_, select
from sqlalchemy.orm import Session

from heartline.core.errors import ForbiddenError, NotFoundError
from heartline.models import Conversation, Like, Message, Pass, User
from heartline.services.sanitizer import require_uuid

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied. You can only delete your own account."


@dataclass(frozen=True)
class DeletionReport:
    user_id: uuid.UUID
    purged: int
    swept: int


class UserLifecycleHandler:
    """Runs the account-deletion cascade in a single transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _last_participant_conversations(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        return list(
            self.db.scalars(
                select(Conversation.id).where(
                    or_(
                        and_(Conversation.user_a_id == user_id, Conversation.user_b_id.is_(None)),
                        and_(Conversation.user_a_id.is_(None), Conversation.user_b_id == user_id),
                    )
                )
            )
        )

    def _orphaned_conversations(self) -> list[uuid.UUID]:
        return list(
            self.db.scalars(
                select(Conversation.id).where(
                    Conversation.user_a_id.is_(None), Conversation.user_b_id.is_(None)
                )
            )
        )

    def _doomed_rows(
        self, user_id: uuid.UUID, conversation_ids: set[uuid.UUID]
    ) -> dict[type, set[uuid.UUID]]:
        """Primary keys, per model, of every row the deletion removes."""
        messages: set[uuid.UUID] = set()
        if conversation_ids:
            messages = set(
                self.db.scalars(
                    select(Message.id).where(Message.conversation_id.in_(conversation_ids))
                )
            )
        likes = self.db.scalars(
            select(Like.id).where(or_(Like.liker_id == user_id, Like.liked_id == user_id))
        )
        passes = self.db.scalars(
            select(Pass.id).where(or_(Pass.passer_id == user_id, Pass.passed_id == user_id))
        )
        return {
            User: {user_id},
            Conversation: conversation_ids,
            Message: messages,
            Like: set(likes),
            Pass: set(passes),
        }

    def _evict(self, doomed: dict[type, set[uuid.UUID]]) -> None:
        # Bulk deletes and FK cascades bypass the unit of work.
        for obj in list(self.db.identity_map.values()):
            identity = inspect(obj).identity
            if identity and identity[0] in doomed.get(type(obj), ()):
                self.db.expunge(obj)

    def delete_account(self, requester_id: uuid.UUID, target_id: object) -> DeletionReport:
        """Delete ``target_id`` on behalf of ``requester_id``.

        Raises:
            ValidationError: malformed target id.
            ForbiddenError: a user may only delete their own account.
            NotFoundError: the account no longer exists.
        """
        user_id = require_uuid(target_id)
        if user_id != requester_id:
            raise ForbiddenError(ACCESS_DENIED)

        try:
            if self.db.get(User, user_id) is None:
                raise NotFoundError("User not found")

            purged = self._last_participant_conversations(user_id)
            swept = self._orphaned_conversations()
            doomed = self._doomed_rows(user_id, set(purged) | set(swept))
            if doomed[Conversation]:
                self.db.execute(
                    delete(Conversation)
                    .where(Conversation.id.in_(doomed[Conversation]))
                    .execution_options(synchronize_session=False)
                )
            self.db.execute(
                delete(User)
                .where(User.id == user_id)
                .execution_options(synchronize_session=False)
            )
            self._evict(doomed)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        # Foreign-key actions ran inside the database; drop stale ORM state.
        self.db.expire_all()
        logger.info(
            "Account deleted",
            extra={"user_id": user_id, "purged": len(purged), "swept": len(swept)},
        )
        return DeletionReport(user_id=user_id, purged=len(purged), swept=len(swept))
