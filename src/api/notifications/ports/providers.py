"""Provider protocol for notification channels.

A provider is anything that can accept a rendered message for one or more
channels. The registry dispatches to providers by name or channel; real
SMTP/SMS/WhatsApp senders are external collaborators behind this protocol.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from notifications.domain.value_objects import (
        NotificationChannel,
        NotificationRequest,
        NotificationResponse,
    )


@runtime_checkable
class NotificationProvider(Protocol):
    """Capability interface implemented by every channel provider."""

    @property
    def name(self) -> str:
        """Registry name of the provider (e.g. "mailgun")."""
        ...

    async def send(self, request: NotificationRequest) -> NotificationResponse:
        """Hand a rendered message to the provider.

        Args:
            request: The rendered message

        Returns:
            The provider's response. Failures may be reported either as a
            non-success response or by raising ProviderSendError.
        """
        ...

    def supported_channels(self) -> frozenset[NotificationChannel]:
        """Channels this provider can deliver on."""
        ...

    def is_available(self) -> bool:
        """Whether the provider is configured and currently usable."""
        ...

    def can_handle(self, request: NotificationRequest) -> bool:
        """Whether this particular message is deliverable by the provider."""
        ...
