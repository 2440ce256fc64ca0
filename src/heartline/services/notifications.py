"""Outbound notifications for match and message events.

Events are POSTed as JSON to a configured webhook (the email/push sender).
Delivery is fire-and-forget: callers schedule ``publish`` after their
transaction commits, and any failure here is logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
import uuid
from dataclasses import dataclass
from typing import Any

import httpx
from jose import jwt

from heartline.core.settings import settings

logger = logging.getLogger(__name__)

EVENT_MATCH_CREATED = "match.created"
EVENT_MESSAGE_CREATED = "message.created"


@dataclass(frozen=True)
class NotificationConfig:
    """Connection settings for the notification webhook."""

    enabled: bool
    webhook_url: str | None
    shared_secret: str | None
    audience: str
    timeout_seconds: float

    @classmethod
    def from_settings(cls) -> NotificationConfig:
        return cls(
            enabled=settings.notifications_enabled,
            webhook_url=settings.notification_webhook_url,
            shared_secret=settings.notification_shared_secret,
            audience=settings.notification_audience,
            timeout_seconds=settings.notification_timeout_seconds,
        )


class NotificationClient:
    """Publishes lifecycle events to the notification webhook."""

    def __init__(self, config: NotificationConfig | None = None) -> None:
        self.config = config or NotificationConfig.from_settings()
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.webhook_url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    def _build_headers(self) -> dict[str, str]:
        headers = {"X-Heartline-Delivery": secrets.token_hex(8)}
        if self.config.shared_secret:
            now = int(time.time())
            token = jwt.encode(
                {"aud": self.config.audience, "iat": now, "exp": now + 60},
                self.config.shared_secret,
                algorithm=settings.jwt_algorithm,
            )
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def publish(self, event: str, payload: dict[str, Any]) -> bool:
        """Deliver one event. Returns False when skipped or failed."""
        if not self.enabled:
            logger.debug("Notifications disabled; dropping %s", event, extra={"event": event})
            return False

        client = await self._ensure_client()
        try:
            response = await client.post(
                self.config.webhook_url or "",
                json={"event": event, "data": payload},
                headers=self._build_headers(),
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Notification %s failed: %s", event, exc, extra={"event": event})
            return False
        return True

    async def notify_match(self, conversation_id: uuid.UUID, user_ids: list[uuid.UUID]) -> bool:
        """Tell both users they matched."""
        return await self.publish(
            EVENT_MATCH_CREATED,
            {
                "conversationId": str(conversation_id),
                "userIds": [str(user_id) for user_id in user_ids],
            },
        )

    async def notify_message(
        self,
        conversation_id: uuid.UUID,
        message_id: uuid.UUID,
        sender_id: uuid.UUID,
        recipient_id: uuid.UUID | None,
    ) -> bool:
        """Tell the recipient a message arrived."""
        if recipient_id is None:
            return False
        return await self.publish(
            EVENT_MESSAGE_CREATED,
            {
                "conversationId": str(conversation_id),
                "messageId": str(message_id),
                "senderId": str(sender_id),
                "recipientId": str(recipient_id),
            },
        )

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _NotificationClientSingleton:
    """Singleton wrapper for NotificationClient."""

    _instance: NotificationClient | None = None

    @classmethod
    def get_instance(cls) -> NotificationClient:
        if cls._instance is None:
            cls._instance = NotificationClient()
        return cls._instance


def get_notification_client() -> NotificationClient:
    """Return a singleton notification client instance."""
    return _NotificationClientSingleton.get_instance()
