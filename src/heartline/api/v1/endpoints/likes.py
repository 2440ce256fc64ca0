# src/heartline/api/v1/endpoints/likes.py
"""Like, unlike and introduction endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, status

from heartline.api.v1.dependencies import CurrentUserDep, NotifierDep, SessionDep
from heartline.schemas.message import MessageResponse
from heartline.schemas.swipe import IntroCreate, LikeCreate
from heartline.services.like_registry import LikedProfile, LikeRegistry
from heartline.services.message_store import MessageStore
from heartline.services.sanitizer import require_uuid

router = APIRouter(prefix="/likes", tags=["likes"])


def _serialize_profile(entry: LikedProfile) -> dict[str, Any]:
    return {
        "id": str(entry.user.id),
        "name": entry.user.name,
        "avatarUrl": entry.user.avatar_url,
        "likedAt": entry.liked_at.isoformat(),
        "hasIntro": entry.has_intro,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def like_user(
    payload: LikeCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Like another user; a reciprocal like opens the pair's conversation."""
    outcome = LikeRegistry(db).record_like(current_user.id, payload.liked_id)

    match: dict[str, Any] | None = None
    if outcome.match is not None:
        conversation = outcome.match.conversation
        match = {
            "conversationId": str(conversation.id),
            "isLocked": conversation.is_locked,
            "isNew": outcome.match.is_new,
        }
        if outcome.match.is_new:
            background_tasks.add_task(
                notifier.notify_match,
                conversation.id,
                [outcome.like.liker_id, outcome.like.liked_id],
            )

    return {
        "success": True,
        "message": "User liked successfully",
        "like": {
            "id": str(outcome.like.id),
            "likerId": str(outcome.like.liker_id),
            "likedId": str(outcome.like.liked_id),
            "createdAt": outcome.like.created_at.isoformat(),
        },
        "match": match,
    }


@router.get("/all")
async def list_liked_users(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Profiles the current user has liked, with their introduction status."""
    entries = LikeRegistry(db).list_liked(current_user.id)
    return {"success": True, "data": [_serialize_profile(entry) for entry in entries]}


@router.get("/pending-intro")
async def list_pending_intro(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Liked users still waiting for an introduction."""
    entries = LikeRegistry(db).list_pending_intro(current_user.id)
    return {"success": True, "data": [_serialize_profile(entry) for entry in entries]}


@router.get("/check/{user_id}")
async def check_like(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    target_id = require_uuid(user_id)
    return {"success": True, "isLiked": LikeRegistry(db).check_exists(current_user.id, target_id)}


@router.delete("/{user_id}")
async def unlike_user(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Remove a like. An already-open conversation stays open."""
    LikeRegistry(db).remove_like(current_user.id, user_id)
    return {"success": True, "message": "User unliked successfully"}


@router.post("/{user_id}/intro", status_code=status.HTTP_201_CREATED)
async def send_introduction(
    user_id: str,
    payload: IntroCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Send the one-time introduction message to a liked user."""
    posted = MessageStore(db).send_introduction(current_user.id, user_id, payload.intro_message)
    background_tasks.add_task(
        notifier.notify_message,
        posted.conversation.id,
        posted.message.id,
        current_user.id,
        posted.recipient_id,
    )
    return {
        "success": True,
        "message": "Introduction sent successfully",
        "introMessage": MessageResponse.from_message(posted.message).to_payload(),
        "conversationId": str(posted.conversation.id),
    }
