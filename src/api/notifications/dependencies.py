"""Wiring for the notifications bounded context.

Builds the provider registry from settings and composes the orchestrator
with the outbox processor. Instances are application-scoped.
"""

from __future__ import annotations

from functools import lru_cache

import httpx

from infrastructure.database.dependencies import get_session_factory
from infrastructure.outbox.dependencies import get_outbox_event_service
from infrastructure.outbox.processor import OutboxProcessor
from infrastructure.settings import (
    NotificationSettings,
    get_notification_settings,
    get_outbox_settings,
)
from notifications.application import (
    NotificationOrchestrator,
    ProviderRegistry,
    TemplateResolver,
)
from notifications.application.observability import DefaultNotificationProbe
from notifications.domain.value_objects import NotificationChannel
from notifications.infrastructure import PreferenceRepository, TemplateRepository
from notifications.infrastructure.providers import (
    MailgunEmailProvider,
    TwilioMessagingProvider,
    logging_providers,
)
from shared_kernel.outbox.observability import DefaultOutboxProcessorProbe

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client used by REST providers (created on first use)."""
    global _http_client
    if _http_client is None:
        settings = get_notification_settings()
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.provider_timeout_seconds)
        )
    return _http_client


async def close_notification_clients() -> None:
    """Close the shared HTTP client. Called on application shutdown."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def build_provider_registry(
    settings: NotificationSettings,
    client: httpx.AsyncClient,
) -> ProviderRegistry:
    """Register the providers enabled by settings.

    Real providers are registered before the log-only ones so they win
    channel lookups when both are present.
    """
    registry = ProviderRegistry(probe=DefaultNotificationProbe())

    if settings.mailgun_configured:
        registry.register(
            "mailgun",
            MailgunEmailProvider(
                client=client,
                api_key=settings.mailgun_api_key.get_secret_value(),
                domain=settings.mailgun_domain,
                from_address=settings.mailgun_from,
                base_url=settings.mailgun_base_url,
            ),
        )

    if settings.twilio_configured:
        token = settings.twilio_auth_token.get_secret_value()
        if settings.twilio_from_number:
            sms = TwilioMessagingProvider(
                client=client,
                account_sid=settings.twilio_account_sid,
                auth_token=token,
                from_number=settings.twilio_from_number,
                channel=NotificationChannel.SMS,
                base_url=settings.twilio_base_url,
            )
            registry.register(sms.name, sms)
        if settings.twilio_whatsapp_from:
            whatsapp = TwilioMessagingProvider(
                client=client,
                account_sid=settings.twilio_account_sid,
                auth_token=token,
                from_number=settings.twilio_whatsapp_from,
                channel=NotificationChannel.WHATSAPP,
                base_url=settings.twilio_base_url,
            )
            registry.register(whatsapp.name, whatsapp)

    if settings.use_logging_providers:
        for provider in logging_providers():
            registry.register(provider.name, provider)

    return registry


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    return build_provider_registry(get_notification_settings(), get_http_client())


@lru_cache
def get_template_resolver() -> TemplateResolver:
    return TemplateResolver(
        repository=TemplateRepository(get_session_factory()),
        default_locale=get_notification_settings().default_locale,
    )


@lru_cache
def get_notification_orchestrator() -> NotificationOrchestrator:
    return NotificationOrchestrator(
        preferences=PreferenceRepository(get_session_factory()),
        templates=get_template_resolver(),
        registry=get_provider_registry(),
    )


@lru_cache
def get_outbox_processor() -> OutboxProcessor:
    """Get the application-scoped outbox processor.

    The notification orchestrator is the processor's event handler.
    """
    return OutboxProcessor(
        service=get_outbox_event_service(),
        handler=get_notification_orchestrator(),
        settings=get_outbox_settings(),
        probe=DefaultOutboxProcessorProbe(),
    )
