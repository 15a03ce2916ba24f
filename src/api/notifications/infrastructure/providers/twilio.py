"""Twilio SMS and WhatsApp providers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from notifications.domain.value_objects import (
    NotificationChannel,
    NotificationResponse,
)
from notifications.infrastructure.providers.rest import post_form

if TYPE_CHECKING:
    from notifications.domain.value_objects import NotificationRequest

WHATSAPP_PREFIX = "whatsapp:"


class TwilioMessagingProvider:
    """Sends text messages through the Twilio Messages API.

    The same API serves SMS and WhatsApp; WhatsApp addresses carry a
    ``whatsapp:`` prefix.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_sid: str,
        auth_token: str,
        from_number: str,
        channel: NotificationChannel,
        base_url: str = "https://api.twilio.com/2010-04-01",
    ) -> None:
        if channel not in (NotificationChannel.SMS, NotificationChannel.WHATSAPP):
            raise ValueError(f"Twilio cannot deliver {channel.value}")
        self._client = client
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from = from_number
        self._channel = channel
        self._endpoint = (
            f"{base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        )

    @property
    def name(self) -> str:
        return f"twilio-{self._channel.value.lower()}"

    async def send(self, request: NotificationRequest) -> NotificationResponse:
        data = {
            "To": self._address(request.recipient),
            "From": self._address(self._from),
            "Body": request.body,
        }
        result = await post_form(
            self._client,
            self.name,
            self._endpoint,
            data,
            (self._account_sid, self._auth_token),
        )
        if isinstance(result, NotificationResponse):
            return result
        try:
            sid = result.json().get("sid")
        except ValueError:
            sid = None
        return NotificationResponse.sent(sid)

    def supported_channels(self) -> frozenset[NotificationChannel]:
        return frozenset({self._channel})

    def is_available(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from)

    def can_handle(self, request: NotificationRequest) -> bool:
        if request.channel != self._channel:
            return False
        number = request.recipient.removeprefix(WHATSAPP_PREFIX)
        return number.startswith("+") and number[1:].isdigit()

    def _address(self, number: str) -> str:
        if self._channel == NotificationChannel.WHATSAPP and not number.startswith(
            WHATSAPP_PREFIX
        ):
            return f"{WHATSAPP_PREFIX}{number}"
        return number
