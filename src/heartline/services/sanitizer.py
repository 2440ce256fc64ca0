# src/heartline/services/sanitizer.py
"""Validation and sanitization of chat message content and identifiers."""

from __future__ import annotations

import re
import unicodedata
import uuid
from dataclasses import dataclass

from heartline.core.errors import ValidationError
from heartline.core.settings import settings

MIN_MESSAGE_LENGTH = 1

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff\u00ad]")
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

_DANGEROUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:(?:image|text|application)/[^;]*;base64,", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE),
    re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE),
    re.compile(r"<object\b[^<]*(?:(?!</object>)<[^<]*)*</object>", re.IGNORECASE),
    re.compile(r"<embed\b[^<]*(?:(?!</embed>)<[^<]*)*</embed>", re.IGNORECASE),
    re.compile(r"<embed\b[^>]*/?>", re.IGNORECASE),
)


@dataclass(frozen=True)
class SanitizeResult:
    """Outcome of ``sanitize_message``."""

    is_valid: bool
    sanitized: str
    error: str | None = None


def _invalid(error: str) -> SanitizeResult:
    return SanitizeResult(is_valid=False, sanitized="", error=error)


def _normalize_unicode(text: str) -> str:
    return unicodedata.normalize("NFC", _ZERO_WIDTH.sub("", text))


def _remove_dangerous_patterns(text: str) -> str:
    for pattern in _DANGEROUS_PATTERNS:
        text = pattern.sub("", text)
    return text


def sanitize_message(content: object, max_length: int | None = None) -> SanitizeResult:
    """Validate and clean raw message content.

    Args:
        content: Raw value received from the client.
        max_length: Character ceiling; defaults to ``settings.message_max_length``.

    Returns:
        A ``SanitizeResult``. ``sanitized`` holds the cleaned text when valid.
        HTML escaping is left to the renderer; stored text is cleaned, not escaped.
    """
    limit = max_length if max_length is not None else settings.message_max_length

    if not content or not isinstance(content, str):
        return _invalid("Message content must be a non-empty string")
    if len(content) > limit:
        return _invalid(f"Message exceeds maximum length of {limit} characters")

    sanitized = content.strip()
    if len(sanitized) < MIN_MESSAGE_LENGTH:
        return _invalid("Message cannot be empty")

    sanitized = _normalize_unicode(sanitized)
    sanitized = _remove_dangerous_patterns(sanitized).strip()

    if len(sanitized) > limit:
        return _invalid(f"Message exceeds maximum length of {limit} characters")
    if len(sanitized) < MIN_MESSAGE_LENGTH:
        return _invalid("Message cannot be empty after sanitization")

    return SanitizeResult(is_valid=True, sanitized=sanitized)


def is_valid_uuid(value: object) -> bool:
    """Return True for a canonical hyphenated UUID string."""
    return isinstance(value, str) and bool(_UUID_PATTERN.match(value))


def parse_uuid(value: object) -> uuid.UUID | None:
    """Parse a canonical UUID string, returning None when the format is wrong."""
    if not is_valid_uuid(value):
        return None
    return uuid.UUID(str(value))


def require_uuid(
    value: object,
    *,
    invalid: str = "Invalid user ID format",
    missing: str | None = None,
) -> uuid.UUID:
    """Parse an id received from a client or raise ``ValidationError``.

    ``missing`` is reported instead of ``invalid`` when the value is absent.
    """
    if isinstance(value, uuid.UUID):
        return value
    if missing is not None and value in (None, ""):
        raise ValidationError(missing)
    parsed = parse_uuid(value)
    if parsed is None:
        raise ValidationError(invalid)
    return parsed
