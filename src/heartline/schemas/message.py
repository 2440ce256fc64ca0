"""Conversation message schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class MessageCreate(BaseModel):
    """Body of ``POST /conversations/{id}/messages``.

    ``content`` is left untyped so the sanitizer reports non-string input.
    """

    content: Any = Field(None, description="Raw message text")


class MessageResponse(BaseModel):
    """A stored message as returned by the API."""

    id: str
    conversation_id: str = Field(..., serialization_alias="conversationId")
    sender_id: str | None = Field(None, serialization_alias="senderId")
    content: str
    created_at: datetime = Field(..., serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()

    @classmethod
    def from_message(cls, message: Any) -> MessageResponse:
        return cls(
            id=str(message.id),
            conversation_id=str(message.conversation_id),
            sender_id=str(message.sender_id) if message.sender_id is not None else None,
            content=message.content,
            created_at=message.created_at,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
