"""Domain error taxonomy for the match and conversation lifecycle.

Services raise these; ``heartline.api.error_handlers`` maps them to a stable
``{"success": false, "error": ..., "code": ...}`` response. Store errors never
reach the client directly.
"""

from __future__ import annotations

from fastapi import status


class DomainError(Exception):
    """Base class for errors that carry their own HTTP mapping."""

    code: str = "DOMAIN_ERROR"
    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, object]:
        """Return the JSON body sent to the client."""
        return {"success": False, "error": self.message, "code": self.code}


class ValidationError(DomainError):
    """Malformed input (bad id format, empty or oversized content, self-like)."""

    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST


class ForbiddenError(DomainError):
    """Requester is not a participant, or no participant remains."""

    code = "FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """Duplicate like, pass or introduction."""

    code = "CONFLICT"
    http_status = status.HTTP_409_CONFLICT


class GoneError(DomainError):
    """Exactly one participant of the conversation has been deleted."""

    code = "GONE"
    http_status = status.HTTP_410_GONE


class LockedError(DomainError):
    """Conversation is still pending a match."""

    code = "LOCKED"
    http_status = status.HTTP_423_LOCKED


class InvalidTransitionError(RuntimeError):
    """Raised when code attempts a lock-state change that is not allowed."""
