"""Mailgun email provider."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from notifications.domain.value_objects import (
    NotificationChannel,
    NotificationResponse,
)
from notifications.infrastructure.providers.rest import post_form

if TYPE_CHECKING:
    from notifications.domain.value_objects import NotificationRequest


class MailgunEmailProvider:
    """Sends email through the Mailgun messages API."""

    name = "mailgun"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        domain: str,
        from_address: str,
        base_url: str = "https://api.mailgun.net/v3",
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._domain = domain
        self._from = from_address
        self._endpoint = f"{base_url.rstrip('/')}/{quote(domain, safe='')}/messages"

    async def send(self, request: NotificationRequest) -> NotificationResponse:
        data = {
            "from": self._from,
            "to": request.recipient,
            "subject": request.subject or "",
            "text": request.body,
        }
        if request.html_body:
            data["html"] = request.html_body

        result = await post_form(
            self._client, self.name, self._endpoint, data, ("api", self._api_key)
        )
        if isinstance(result, NotificationResponse):
            return result
        return NotificationResponse.sent(_message_id(result))

    def supported_channels(self) -> frozenset[NotificationChannel]:
        return frozenset({NotificationChannel.EMAIL})

    def is_available(self) -> bool:
        return bool(self._api_key and self._domain)

    def can_handle(self, request: NotificationRequest) -> bool:
        return request.channel == NotificationChannel.EMAIL and "@" in request.recipient


def _message_id(response: httpx.Response) -> str | None:
    try:
        return response.json().get("id")
    except ValueError:
        return None
