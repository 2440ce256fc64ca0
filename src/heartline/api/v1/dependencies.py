"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from heartline.core.security import decode_subject
from heartline.core.settings import settings
from heartline.db.session import get_db
from heartline.models import User
from heartline.services.notifications import NotificationClient, get_notification_client

# Bearer is optional: browsers authenticate with the session cookie instead.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Resolve the authenticated user from a Bearer header or the session cookie.

    Raises:
        HTTPException: 401 when no token is present, it does not verify, or
            its subject no longer exists.
    """
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise _unauthorized("Access token required")

    user_id = decode_subject(token)
    if user_id is None:
        raise _unauthorized("Could not validate credentials")

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_notifier() -> NotificationClient:
    """Return the shared notification client."""
    return get_notification_client()


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
NotifierDep = Annotated[NotificationClient, Depends(get_notifier)]
