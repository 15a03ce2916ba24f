"""Notification orchestrator: turns an outbox event into channel deliveries.

For each event the orchestrator:
1. Decodes event_data into template variables
2. Loads the customer's enabled preferences for the event type
3. Resolves and renders the localized template per channel
4. Sends through the registry's provider for that channel
5. Aggregates the per-channel results into one report

The event is delivered only if every selected channel succeeded. A partial
failure fails the whole event, so the next attempt resends every channel.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from notifications.application.observability import DefaultNotificationProbe
from notifications.domain.value_objects import (
    ChannelDeliveryResult,
    DeliveryErrorCode,
    EventDeliveryReport,
    NotificationChannel,
    NotificationRequest,
)
from notifications.ports.exceptions import ProviderSendError, TemplateSyntaxError
from shared_kernel.observability_context import ObservationContext
from shared_kernel.outbox.exceptions import (
    NonRetryableDeliveryError,
    OutboxDeliveryError,
)

if TYPE_CHECKING:
    from notifications.application.observability import NotificationProbe
    from notifications.application.provider_registry import ProviderRegistry
    from notifications.application.template_resolver import TemplateResolver
    from notifications.domain.value_objects import CustomerNotificationPreference
    from notifications.ports.repositories import IPreferenceRepository
    from shared_kernel.outbox.value_objects import OutboxEvent

CUSTOMER_ID_KEY = "customerId"


class NotificationOrchestrator:
    """Delivers outbox events as customer notifications.

    Also serves as the outbox processor's event handler through handle().
    """

    def __init__(
        self,
        preferences: IPreferenceRepository,
        templates: TemplateResolver,
        registry: ProviderRegistry,
        probe: NotificationProbe | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            preferences: Source of customer channel preferences
            templates: Template lookup and rendering
            registry: Providers keyed by name
            probe: Observability probe for logging/metrics
        """
        self._preferences = preferences
        self._templates = templates
        self._registry = registry
        self._probe = probe or DefaultNotificationProbe()

    async def process_event(self, event: OutboxEvent) -> EventDeliveryReport:
        """Deliver one event on every channel the customer enabled.

        Args:
            event: The outbox event

        Returns:
            Aggregated per-channel outcome. Configuration problems that
            prevent any delivery are reported as an event-level error.
        """
        probe = self._probe.with_context(
            ObservationContext(tenant_id=event.tenant_id, event_id=str(event.id))
        )

        try:
            variables = decode_event_data(event)
        except ValueError as e:
            return self._event_error(
                event, probe, DeliveryErrorCode.INVALID_EVENT_DATA, str(e)
            )

        customer_id = variables.get(CUSTOMER_ID_KEY) or event.metadata.get(
            CUSTOMER_ID_KEY
        )
        if not customer_id:
            return self._event_error(
                event,
                probe,
                DeliveryErrorCode.MISSING_CUSTOMER,
                f"Event has no {CUSTOMER_ID_KEY} in its data or metadata",
            )

        preferences = await self._preferences.list_enabled(
            event.tenant_id, str(customer_id), event.event_type
        )
        if not preferences:
            probe.no_preferences(str(customer_id), event.event_type)

        results = []
        for preference in preferences:
            results.append(await self._deliver(event, variables, preference, probe))

        report = EventDeliveryReport(
            event_id=str(event.id),
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            results=tuple(results),
        )
        probe.event_delivery_completed(event.event_type, report.delivered, len(results))
        return report

    async def process_events(self, events: list[OutboxEvent]) -> list[EventDeliveryReport]:
        """Deliver several events sequentially, one report per event."""
        return [await self.process_event(event) for event in events]

    async def handle(self, event: OutboxEvent) -> None:
        """Deliver an event on behalf of the outbox processor.

        Raises:
            NonRetryableDeliveryError: A failure that retrying cannot fix
            OutboxDeliveryError: A transient failure on at least one channel
        """
        report = await self.process_event(event)
        if report.delivered:
            return

        message = report.failure_message or "Notification delivery failed"
        code = report.failure_code or DeliveryErrorCode.DELIVERY_FAILED.value
        if report.has_non_retryable_failure:
            raise NonRetryableDeliveryError(message, error_code=code)
        raise OutboxDeliveryError(message, error_code=code)

    async def can_send_notification(
        self,
        tenant_id: str,
        customer_id: str,
        event_type: str,
        channel: NotificationChannel,
    ) -> bool:
        """Whether the customer has the channel enabled with a contact and a usable provider."""
        preference = await self._preferences.get(
            tenant_id, customer_id, event_type, channel
        )
        if preference is None or not preference.enabled or not preference.has_contact:
            return False
        return self._registry.get_for_channel(channel) is not None

    async def get_available_channels(
        self, tenant_id: str, customer_id: str, event_type: str
    ) -> list[NotificationChannel]:
        """Channels the customer has enabled for the event type."""
        preferences = await self._preferences.list_enabled(
            tenant_id, customer_id, event_type
        )
        return [preference.channel for preference in preferences]

    async def _deliver(
        self,
        event: OutboxEvent,
        variables: dict[str, Any],
        preference: CustomerNotificationPreference,
        probe: NotificationProbe,
    ) -> ChannelDeliveryResult:
        channel = preference.channel

        if not preference.has_contact:
            return self._channel_failure(
                probe,
                channel,
                None,
                DeliveryErrorCode.MISSING_CONTACT,
                "Preference has no contact information",
                retryable=False,
            )
        recipient = preference.contact_info.strip()

        template = await self._templates.find_template(
            event.tenant_id, event.event_type, channel, preference.locale
        )
        if template is None:
            return self._channel_failure(
                probe,
                channel,
                recipient,
                DeliveryErrorCode.TEMPLATE_NOT_FOUND,
                f"No active template for {event.event_type}/{channel.value}"
                f"/{preference.locale}",
                retryable=False,
            )

        provider = self._registry.get_for_channel(channel)
        if provider is None:
            probe.provider_missing(channel.value)
            if self._registry.has_provider_for_channel(channel):
                return self._channel_failure(
                    probe,
                    channel,
                    recipient,
                    DeliveryErrorCode.PROVIDER_UNAVAILABLE,
                    f"No {channel.value} provider is currently available",
                    retryable=True,
                )
            return self._channel_failure(
                probe,
                channel,
                recipient,
                DeliveryErrorCode.PROVIDER_NOT_CONFIGURED,
                f"No provider registered for {channel.value}",
                retryable=False,
            )

        try:
            subject = (
                self._templates.render(template.subject, variables)
                if template.subject
                else None
            )
            body = self._templates.render(template.body, variables)
            html_body = (
                self._templates.render(template.html_body, variables, escape_html=True)
                if template.html_body
                else None
            )
        except TemplateSyntaxError as e:
            return self._channel_failure(
                probe,
                channel,
                recipient,
                DeliveryErrorCode.TEMPLATE_INVALID,
                f"Template {event.event_type}/{channel.value}/{template.locale}"
                f" cannot be rendered: {e}",
                retryable=False,
            )

        request = NotificationRequest(
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            channel=channel,
            recipient=recipient,
            subject=subject,
            body=body,
            html_body=html_body,
            locale=template.locale,
            metadata={
                "eventId": str(event.id),
                "aggregateId": event.aggregate_id,
                "verified": preference.verified,
            },
        )

        if not provider.can_handle(request):
            return self._channel_failure(
                probe,
                channel,
                recipient,
                DeliveryErrorCode.CHANNEL_NOT_SUPPORTED,
                f"Provider {provider.name} cannot handle this {channel.value} message",
                retryable=False,
                provider_name=provider.name,
            )

        try:
            response = await provider.send(request)
        except ProviderSendError as e:
            return self._channel_failure(
                probe,
                channel,
                recipient,
                e.error_code or DeliveryErrorCode.DELIVERY_FAILED,
                str(e),
                retryable=e.retryable,
                provider_name=provider.name,
            )
        except Exception as e:
            return self._channel_failure(
                probe,
                channel,
                recipient,
                DeliveryErrorCode.DELIVERY_FAILED,
                f"{type(e).__name__}: {e}",
                retryable=True,
                provider_name=provider.name,
            )

        if response.is_success:
            probe.notification_sent(
                channel.value, provider.name, response.provider_message_id
            )
            return ChannelDeliveryResult(
                channel=channel,
                recipient=recipient,
                success=True,
                provider_name=provider.name,
                provider_message_id=response.provider_message_id,
                timestamp=response.timestamp,
            )

        if response.status.is_permanent_failure:
            code = DeliveryErrorCode.DELIVERY_REJECTED
            retryable = False
        else:
            code = DeliveryErrorCode.DELIVERY_FAILED
            retryable = True
        return self._channel_failure(
            probe,
            channel,
            recipient,
            response.error_code or code,
            response.error_message or f"Provider returned {response.status.value}",
            retryable=retryable,
            provider_name=provider.name,
        )

    def _channel_failure(
        self,
        probe: NotificationProbe,
        channel: NotificationChannel,
        recipient: str | None,
        error_code: str,
        error_message: str,
        retryable: bool,
        provider_name: str | None = None,
    ) -> ChannelDeliveryResult:
        probe.notification_failed(channel.value, str(error_code), error_message, retryable)
        return ChannelDeliveryResult(
            channel=channel,
            recipient=recipient,
            success=False,
            provider_name=provider_name,
            error_code=str(error_code),
            error_message=error_message,
            retryable=retryable,
        )

    def _event_error(
        self,
        event: OutboxEvent,
        probe: NotificationProbe,
        error_code: DeliveryErrorCode,
        error_message: str,
    ) -> EventDeliveryReport:
        probe.notification_failed("", error_code.value, error_message, False)
        return EventDeliveryReport(
            event_id=str(event.id),
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            error_code=error_code.value,
            error_message=error_message,
            retryable=False,
        )


def decode_event_data(event: OutboxEvent) -> dict[str, Any]:
    """Decode an event's JSON payload into template variables.

    Event identity fields are added under tenantId, eventType, aggregateId
    and aggregateType unless the payload already defines them.

    Raises:
        ValueError: The payload is not a JSON object
    """
    try:
        data = json.loads(event.event_data) if event.event_data else {}
    except json.JSONDecodeError as e:
        raise ValueError(f"event_data is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise ValueError(f"event_data must be a JSON object, got {type(data).__name__}")

    data.setdefault("tenantId", event.tenant_id)
    data.setdefault("eventType", event.event_type)
    data.setdefault("aggregateId", event.aggregate_id)
    data.setdefault("aggregateType", event.aggregate_type)
    return data
