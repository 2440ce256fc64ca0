"""Append-only conversation messages and the pre-match introduction."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from heartline.core.errors import (
    ConflictError,
    ForbiddenError,
    GoneError,
    LockedError,
    NotFoundError,
    ValidationError,
)
from heartline.models import Conversation, Like, Message, User
from heartline.services.conversation_store import (
    ConversationStore,
    public_profile,
    sanitized_counterpart,
)
from heartline.services.match_resolver import lock_pair
from heartline.services.sanitizer import require_uuid, sanitize_message

logger = logging.getLogger(__name__)

CONVERSATION_ID_INVALID = "Invalid conversation ID format"
OTHER_USER_DELETED = "Cannot send message: other user has been deleted"
CHAT_LOCKED = "Chat is locked until you match"


@dataclass
class PostedMessage:
    """A stored message and the participant who should hear about it."""

    message: Message
    conversation: Conversation
    recipient_id: uuid.UUID | None


@dataclass
class MessageThread:
    """Messages of one conversation as seen by one participant."""

    conversation: Conversation
    messages: list[Message]
    me: dict[str, Any]
    other: dict[str, Any]


def _clean(content: object) -> str:
    result = sanitize_message(content)
    if not result.is_valid:
        raise ValidationError(result.error)
    return result.sanitized


class MessageStore:
    """Stores messages once a conversation's lock and presence state allow it."""

    def __init__(self, db: Session, conversations: ConversationStore | None = None) -> None:
        self.db = db
        self.conversations = conversations or ConversationStore(db)

    def _authorize_participant(self, conversation: Conversation, user_id: uuid.UUID) -> None:
        if conversation.present_count == 0 or not conversation.has_participant(user_id):
            raise ForbiddenError("Forbidden")

    def send_message(
        self,
        conversation_id: object,
        sender_id: uuid.UUID,
        raw_content: object,
    ) -> PostedMessage:
        """Append a message to an active conversation.

        Checks run in a fixed order: id format and existence, membership,
        counterpart presence, lock state, then content.
        """
        cid = require_uuid(conversation_id, invalid=CONVERSATION_ID_INVALID)
        try:
            conversation = self.conversations.get(cid, for_update=True)
            self._authorize_participant(conversation, sender_id)
            if conversation.present_count == 1:
                raise GoneError(OTHER_USER_DELETED)
            if conversation.is_locked:
                raise LockedError(CHAT_LOCKED)
            content = _clean(raw_content)

            message = Message(conversation_id=conversation.id, sender_id=sender_id, content=content)
            self.db.add(message)
            self.conversations.touch(conversation)
            self.db.flush()
            recipient_id = conversation.counterpart_of(sender_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Message stored",
            extra={"user_id": sender_id, "conversation_id": cid, "message_id": message.id},
        )
        return PostedMessage(message=message, conversation=conversation, recipient_id=recipient_id)

    def send_introduction(
        self,
        liker_id: uuid.UUID,
        liked_id: object,
        raw_content: object,
    ) -> PostedMessage:
        """Send the liker's single introduction message.

        The pair's conversation is created pending when it does not exist yet;
        an existing conversation keeps its lock state.
        """
        target_id = require_uuid(liked_id)
        content = _clean(raw_content)

        try:
            lock_pair(self.db, liker_id, target_id)
            like = self.db.scalar(
                select(Like.id).where(Like.liker_id == liker_id, Like.liked_id == target_id)
            )
            if like is None:
                raise NotFoundError("Like not found")

            conversation, _created = self.conversations.find_or_create(
                liker_id,
                target_id,
                initial_locked=True,
                for_update=True,
            )
            already_sent = self.db.scalar(
                select(Message.id)
                .where(Message.conversation_id == conversation.id, Message.sender_id == liker_id)
                .limit(1)
            )
            if already_sent is not None:
                raise ConflictError("Introduction message already sent")

            message = Message(conversation_id=conversation.id, sender_id=liker_id, content=content)
            self.db.add(message)
            self.conversations.touch(conversation)
            self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Introduction sent",
            extra={
                "user_id": liker_id,
                "target_id": target_id,
                "conversation_id": conversation.id,
                "message_id": message.id,
            },
        )
        return PostedMessage(message=message, conversation=conversation, recipient_id=target_id)

    def list_messages(self, conversation_id: object, user: User) -> MessageThread:
        """Oldest-first messages with a participants view for ``user``."""
        cid = require_uuid(conversation_id, invalid=CONVERSATION_ID_INVALID)
        conversation = self.conversations.get(cid)
        self._authorize_participant(conversation, user.id)

        messages = self.db.scalars(
            select(Message)
            .where(Message.conversation_id == conversation.id)
            .order_by(Message.created_at.asc())
        ).all()
        other_id = conversation.counterpart_of(user.id)
        other = self.db.get(User, other_id) if other_id is not None else None
        return MessageThread(
            conversation=conversation,
            messages=list(messages),
            me=public_profile(user),
            other=sanitized_counterpart(conversation, other),
        )
