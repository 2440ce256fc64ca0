# src/heartline/models/__init__.py
"""SQLAlchemy models for the Heartline application."""

from .conversation import Conversation, ConversationState
from .message import Message
from .swipe import Like, Pass
from .user import User

__all__ = [
    "Conversation", "ConversationState",
    "Message",
    "Like", "Pass",
    "User",
]
