# src/heartline/api/v1/endpoints/users.py
"""Account endpoints owned by the lifecycle core."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from heartline.api.v1.dependencies import CurrentUserDep, SessionDep
from heartline.core.settings import settings
from heartline.services.user_lifecycle import UserLifecycleHandler

router = APIRouter(prefix="/users", tags=["users"])


@router.delete("/{user_id}")
async def delete_account(
    user_id: str,
    response: Response,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Delete the caller's own account and end their session."""
    UserLifecycleHandler(db).delete_account(current_user.id, user_id)
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Account deleted successfully"}
