# src/heartline/api/v1/endpoints/passes.py
"""Pass and unpass endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from heartline.api.v1.dependencies import CurrentUserDep, SessionDep
from heartline.schemas.swipe import PassCreate
from heartline.services.like_registry import LikeRegistry

router = APIRouter(prefix="/passes", tags=["passes"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def pass_user(payload: PassCreate, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Pass on a user. Passing never retracts an existing like."""
    user_pass = LikeRegistry(db).record_pass(current_user.id, payload.passed_id)
    return {
        "success": True,
        "message": "User passed successfully",
        "pass": {
            "id": str(user_pass.id),
            "passerId": str(user_pass.passer_id),
            "passedId": str(user_pass.passed_id),
            "createdAt": user_pass.created_at.isoformat(),
        },
    }


@router.delete("/{user_id}")
async def unpass_user(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    LikeRegistry(db).remove_pass(current_user.id, user_id)
    return {"success": True, "message": "User unpassed successfully"}
