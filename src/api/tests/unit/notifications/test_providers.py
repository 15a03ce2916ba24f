"""Unit tests for the Mailgun, Twilio and logging providers.

HTTP calls go through httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from notifications.domain.value_objects import (
    DeliveryStatus,
    NotificationChannel,
    NotificationRequest,
)
from notifications.infrastructure.providers import (
    LoggingProvider,
    MailgunEmailProvider,
    TwilioMessagingProvider,
    logging_providers,
)
from notifications.ports.exceptions import ProviderSendError
from notifications.ports.providers import NotificationProvider


def _request(channel=NotificationChannel.EMAIL, recipient="ann@example.com", **kw):
    return NotificationRequest(
        tenant_id="tenant-1",
        event_type="ORDER_PLACED",
        channel=channel,
        recipient=recipient,
        body=kw.pop("body", "Hi Ann"),
        **kw,
    )


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestMailgunEmailProvider:
    """Tests for MailgunEmailProvider."""

    @pytest.mark.asyncio
    async def test_sends_form_to_messages_endpoint(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "<20260108.1@mg.example.com>"})

        async with _client(handler) as client:
            provider = MailgunEmailProvider(
                client, "key-123", "mg.example.com", "Shop <no-reply@example.com>"
            )
            response = await provider.send(
                _request(subject="Order X1", html_body="<p>Hi Ann</p>")
            )

        assert response.is_success
        assert response.provider_message_id == "<20260108.1@mg.example.com>"
        sent = captured[0]
        assert str(sent.url) == "https://api.mailgun.net/v3/mg.example.com/messages"
        assert sent.headers["authorization"].startswith("Basic ")
        form = sent.content.decode()
        assert "subject=Order+X1" in form
        assert "html=" in form

    @pytest.mark.asyncio
    async def test_client_error_is_rejected(self):
        async with _client(lambda r: httpx.Response(400, text="bad address")) as client:
            provider = MailgunEmailProvider(client, "k", "mg.example.com", "a@b.c")
            response = await provider.send(_request())

        assert response.status is DeliveryStatus.REJECTED
        assert response.error_code == "HTTP_400"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [429, 500, 503])
    async def test_server_error_raises_retryable(self, status_code):
        async with _client(lambda r: httpx.Response(status_code)) as client:
            provider = MailgunEmailProvider(client, "k", "mg.example.com", "a@b.c")
            with pytest.raises(ProviderSendError) as exc_info:
                await provider.send(_request())

        assert exc_info.value.retryable
        assert exc_info.value.error_code == f"HTTP_{status_code}"

    @pytest.mark.asyncio
    async def test_network_error_raises_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            provider = MailgunEmailProvider(client, "k", "mg.example.com", "a@b.c")
            with pytest.raises(ProviderSendError) as exc_info:
                await provider.send(_request())

        assert exc_info.value.retryable

    def test_can_handle_requires_email_address(self):
        provider = MailgunEmailProvider(
            httpx.AsyncClient(), "k", "mg.example.com", "a@b.c"
        )

        assert provider.can_handle(_request())
        assert not provider.can_handle(_request(recipient="ann"))
        assert not provider.can_handle(
            _request(NotificationChannel.SMS, recipient="+15551234567")
        )
        assert isinstance(provider, NotificationProvider)


class TestTwilioMessagingProvider:
    """Tests for TwilioMessagingProvider."""

    @pytest.mark.asyncio
    async def test_sms_posts_to_messages_json(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(201, json={"sid": "SM123"})

        async with _client(handler) as client:
            provider = TwilioMessagingProvider(
                client, "AC1", "token", "+15550000000", NotificationChannel.SMS
            )
            response = await provider.send(
                _request(NotificationChannel.SMS, recipient="+15551234567")
            )

        assert provider.name == "twilio-sms"
        assert response.provider_message_id == "SM123"
        assert captured[0].url.path == "/2010-04-01/Accounts/AC1/Messages.json"
        assert "To=%2B15551234567" in captured[0].content.decode()

    @pytest.mark.asyncio
    async def test_whatsapp_addresses_are_prefixed(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(201, json={"sid": "SM456"})

        async with _client(handler) as client:
            provider = TwilioMessagingProvider(
                client, "AC1", "token", "+15550000000", NotificationChannel.WHATSAPP
            )
            await provider.send(
                _request(NotificationChannel.WHATSAPP, recipient="+15551234567")
            )

        form = captured[0].content.decode()
        assert provider.name == "twilio-whatsapp"
        assert "To=whatsapp%3A%2B15551234567" in form
        assert "From=whatsapp%3A%2B15550000000" in form

    def test_can_handle_requires_e164_number(self):
        provider = TwilioMessagingProvider(
            httpx.AsyncClient(), "AC1", "token", "+1555", NotificationChannel.SMS
        )

        assert provider.can_handle(_request(NotificationChannel.SMS, "+15551234567"))
        assert not provider.can_handle(_request(NotificationChannel.SMS, "555-1234"))
        assert not provider.can_handle(_request(NotificationChannel.EMAIL, "+1555"))

    def test_rejects_email_channel(self):
        with pytest.raises(ValueError):
            TwilioMessagingProvider(
                httpx.AsyncClient(), "AC1", "t", "+1555", NotificationChannel.EMAIL
            )


class TestLoggingProvider:
    """Tests for the log-only providers."""

    @pytest.mark.asyncio
    async def test_reports_sent(self):
        provider = LoggingProvider("log-email", frozenset({NotificationChannel.EMAIL}))

        response = await provider.send(_request())

        assert response.is_success
        assert response.provider_message_id.startswith("log-")

    def test_one_provider_per_channel(self):
        providers = logging_providers()

        covered = set()
        for provider in providers:
            covered |= provider.supported_channels()

        assert covered == set(NotificationChannel)
        assert [p.name for p in providers] == ["log-email", "log-sms", "log-whatsapp"]
