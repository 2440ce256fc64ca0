# src/heartline/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .message import MessageCreate, MessageResponse
from .swipe import IntroCreate, LikeCreate, PassCreate

__all__ = [
    "MessageCreate", "MessageResponse",
    "IntroCreate", "LikeCreate", "PassCreate",
]
