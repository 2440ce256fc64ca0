# src/heartline/api/v1/endpoints/matches.py
"""Read-only views of mutual likes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from heartline.api.v1.dependencies import CurrentUserDep, SessionDep
from heartline.services.conversation_store import public_profile
from heartline.services.match_resolver import MatchResolver
from heartline.services.sanitizer import require_uuid

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("")
async def list_matches(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Users who liked the current user back."""
    matches = []
    for partner, conversation in MatchResolver(db).list_matches(current_user.id):
        entry = public_profile(partner)
        entry["conversationId"] = str(conversation.id) if conversation is not None else None
        matches.append(entry)
    return {"success": True, "matches": matches}


@router.get("/check/{user_id}")
async def check_match(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    target_id = require_uuid(user_id)
    return {"success": True, "isMatch": MatchResolver(db).is_match(current_user.id, target_id)}
