# src/heartline/api/v1/endpoints/conversations.py
"""Conversation inbox and message endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, status

from heartline.api.v1.dependencies import CurrentUserDep, NotifierDep, SessionDep
from heartline.schemas.message import MessageCreate, MessageResponse
from heartline.services.conversation_store import ConversationStore
from heartline.services.message_store import MessageStore

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("")
async def list_conversations(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """The current user's conversations, most recently active first."""
    conversations = []
    for summary in ConversationStore(db).list_for_user(current_user.id):
        last = summary.last_message
        conversations.append(
            {
                "id": str(summary.conversation.id),
                "isLocked": summary.conversation.is_locked,
                "updatedAt": summary.conversation.updated_at.isoformat(),
                "lastMessage": MessageResponse.from_message(last).to_payload() if last else None,
                "otherUser": summary.other_user,
            }
        )
    return {"success": True, "conversations": conversations}


@router.get("/{conversation_id}/messages")
async def get_messages(
    conversation_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    thread = MessageStore(db).list_messages(conversation_id, current_user)
    return {
        "success": True,
        "isLocked": thread.conversation.is_locked,
        "messages": [MessageResponse.from_message(m).to_payload() for m in thread.messages],
        "participants": {"me": thread.me, "other": thread.other},
        "currentUserId": str(current_user.id),
    }


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Send a message in an active conversation."""
    posted = MessageStore(db).send_message(conversation_id, current_user.id, payload.content)
    background_tasks.add_task(
        notifier.notify_message,
        posted.conversation.id,
        posted.message.id,
        current_user.id,
        posted.recipient_id,
    )
    return {"success": True, "message": MessageResponse.from_message(posted.message).to_payload()}
