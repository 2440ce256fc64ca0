# src/heartline/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .conversations import router as conversations_router
from .likes import router as likes_router
from .matches import router as matches_router
from .passes import router as passes_router
from .users import router as users_router

__all__ = [
    "conversations_router",
    "likes_router",
    "matches_router",
    "passes_router",
    "users_router",
]
