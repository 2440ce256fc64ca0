# src/heartline/services/__init__.py
"""Business logic services for the Heartline application."""

from .conversation_store import ConversationStore
from .like_registry import LikeRegistry
from .match_resolver import MatchResolver
from .message_store import MessageStore
from .notifications import NotificationClient, get_notification_client
from .user_lifecycle import UserLifecycleHandler

__all__ = [
    "ConversationStore",
    "LikeRegistry",
    "MatchResolver",
    "MessageStore",
    "NotificationClient", "get_notification_client",
    "UserLifecycleHandler",
]
