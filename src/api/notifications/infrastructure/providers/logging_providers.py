"""Log-only providers for development and local runs.

These providers accept every message for their channel and write it to
the structured log instead of contacting a real service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from notifications.domain.value_objects import (
    NotificationChannel,
    NotificationResponse,
)

if TYPE_CHECKING:
    from notifications.domain.value_objects import NotificationRequest


class LoggingProvider:
    """Provider that records messages in the log and reports them as sent."""

    def __init__(
        self,
        name: str,
        channels: frozenset[NotificationChannel],
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._name = name
        self._channels = channels
        self._logger = logger or structlog.get_logger().bind(
            component="notification_provider", provider=name
        )

    @property
    def name(self) -> str:
        return self._name

    async def send(self, request: NotificationRequest) -> NotificationResponse:
        message_id = f"log-{uuid4().hex}"
        self._logger.info(
            "notification_logged",
            channel=request.channel.value,
            recipient=request.recipient,
            subject=request.subject,
            body=request.body,
            tenant_id=request.tenant_id,
            event_type=request.event_type,
            provider_message_id=message_id,
        )
        return NotificationResponse.sent(message_id)

    def supported_channels(self) -> frozenset[NotificationChannel]:
        return self._channels

    def is_available(self) -> bool:
        return True

    def can_handle(self, request: NotificationRequest) -> bool:
        return request.channel in self._channels and bool(request.recipient)


def logging_providers() -> list[LoggingProvider]:
    """One log-only provider per channel."""
    return [
        LoggingProvider("log-email", frozenset({NotificationChannel.EMAIL})),
        LoggingProvider("log-sms", frozenset({NotificationChannel.SMS})),
        LoggingProvider("log-whatsapp", frozenset({NotificationChannel.WHATSAPP})),
    ]
