# src/heartline/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    conversations_router,
    likes_router,
    matches_router,
    passes_router,
    users_router,
)

__all__ = [
    "conversations_router",
    "likes_router",
    "matches_router",
    "passes_router",
    "users_router",
]
