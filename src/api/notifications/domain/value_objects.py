"""Value objects for the notifications bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class NotificationChannel(StrEnum):
    """Communication channels a notification can be delivered through."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"

    @property
    def uses_subject(self) -> bool:
        return self == NotificationChannel.EMAIL


class DeliveryStatus(StrEnum):
    """Outcome reported by a provider for a single message."""

    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    BOUNCED = "BOUNCED"
    REJECTED = "REJECTED"

    @property
    def is_success(self) -> bool:
        return self in (DeliveryStatus.SENT, DeliveryStatus.DELIVERED)

    @property
    def is_permanent_failure(self) -> bool:
        """Failures the provider will keep reporting for the same message."""
        return self in (DeliveryStatus.BOUNCED, DeliveryStatus.REJECTED)


class DeliveryErrorCode(StrEnum):
    """Error codes recorded on failed deliveries and dead-lettered events."""

    INVALID_EVENT_DATA = "INVALID_EVENT_DATA"
    MISSING_CUSTOMER = "MISSING_CUSTOMER"
    MISSING_CONTACT = "MISSING_CONTACT"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_INVALID = "TEMPLATE_INVALID"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    CHANNEL_NOT_SUPPORTED = "CHANNEL_NOT_SUPPORTED"
    DELIVERY_REJECTED = "DELIVERY_REJECTED"
    DELIVERY_FAILED = "DELIVERY_FAILED"


@dataclass(frozen=True)
class NotificationTemplate:
    """Localized message template for one tenant, event type and channel.

    ``subject``, ``body`` and ``html_body`` may contain ``{{path}}``
    placeholders and ``{{#flag}}...{{/flag}}`` conditional sections.
    """

    tenant_id: str
    event_type: str
    channel: NotificationChannel
    locale: str
    body: str
    subject: str | None = None
    html_body: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CustomerNotificationPreference:
    """A customer's opt-in for one event type on one channel."""

    tenant_id: str
    customer_id: str
    event_type: str
    channel: NotificationChannel
    contact_info: str | None
    enabled: bool = True
    locale: str = "en"
    verified: bool = False

    @property
    def has_contact(self) -> bool:
        return bool(self.contact_info and self.contact_info.strip())


@dataclass(frozen=True)
class NotificationRequest:
    """A rendered message ready to hand to a provider."""

    tenant_id: str
    event_type: str
    channel: NotificationChannel
    recipient: str
    body: str
    subject: str | None = None
    html_body: str | None = None
    locale: str = "en"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationResponse:
    """A provider's answer to a NotificationRequest."""

    status: DeliveryStatus
    provider_message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @classmethod
    def sent(cls, provider_message_id: str | None = None) -> NotificationResponse:
        return cls(status=DeliveryStatus.SENT, provider_message_id=provider_message_id)

    @classmethod
    def failed(
        cls,
        error_message: str,
        error_code: str | None = None,
        status: DeliveryStatus = DeliveryStatus.FAILED,
    ) -> NotificationResponse:
        return cls(status=status, error_code=error_code, error_message=error_message)


@dataclass(frozen=True)
class ChannelDeliveryResult:
    """Outcome of delivering one event on one channel.

    Attributes:
        channel: Channel the delivery was attempted on
        recipient: Contact address or handle (None if it was missing)
        success: Whether the provider accepted the message
        provider_name: Provider that handled the message
        provider_message_id: Provider's id for the message, on success
        error_code: DeliveryErrorCode value, on failure
        error_message: Human-readable failure detail
        retryable: Whether a later attempt could succeed
        timestamp: When the outcome was recorded
    """

    channel: NotificationChannel
    recipient: str | None
    success: bool
    provider_name: str | None = None
    provider_message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    retryable: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class EventDeliveryReport:
    """Aggregated per-channel outcomes for one outbox event.

    The event counts as delivered only when every selected channel succeeded.
    An event with no selected channels is trivially delivered.
    """

    event_id: str
    tenant_id: str
    event_type: str
    results: tuple[ChannelDeliveryResult, ...] = ()
    error_code: str | None = None
    error_message: str | None = None
    retryable: bool = True

    @property
    def delivered(self) -> bool:
        return self.error_code is None and all(r.success for r in self.results)

    @property
    def first_failure(self) -> ChannelDeliveryResult | None:
        """The failure that decides the event outcome.

        A non-retryable failure outranks earlier transient ones.
        """
        failures = [r for r in self.results if not r.success]
        return next(
            (r for r in failures if not r.retryable),
            failures[0] if failures else None,
        )

    @property
    def has_non_retryable_failure(self) -> bool:
        if self.error_code is not None:
            return not self.retryable
        return any(not r.success and not r.retryable for r in self.results)

    @property
    def failure_message(self) -> str | None:
        """Message of the event-level error or of the first failed channel."""
        if self.error_code is not None:
            return self.error_message
        failure = self.first_failure
        if failure is None:
            return None
        return f"{failure.channel.value}: {failure.error_message}"

    @property
    def failure_code(self) -> str | None:
        if self.error_code is not None:
            return self.error_code
        failure = self.first_failure
        return failure.error_code if failure else None
