"""Protocol for notification delivery observability.

Defines the interface for domain probes that capture delivery events from
the orchestrator, template resolver and provider registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class NotificationProbe(Protocol):
    """Domain probe for notification delivery."""

    def notification_sent(
        self, channel: str, provider: str, provider_message_id: str | None
    ) -> None:
        """Record that a provider accepted a message."""
        ...

    def notification_failed(
        self, channel: str, error_code: str | None, error: str | None, retryable: bool
    ) -> None:
        """Record that delivery on a channel failed."""
        ...

    def no_preferences(self, customer_id: str, event_type: str) -> None:
        """Record that the customer has no enabled channel for the event."""
        ...

    def template_missing(self, event_type: str, channel: str, locale: str) -> None:
        """Record that no active template matched, even after locale fallback."""
        ...

    def template_fallback_used(self, requested_locale: str, used_locale: str) -> None:
        """Record that a template was found only in a fallback locale."""
        ...

    def provider_missing(self, channel: str) -> None:
        """Record that no provider is registered for a channel."""
        ...

    def provider_registered(self, name: str, channels: list[str]) -> None:
        """Record that a provider was added to the registry."""
        ...

    def event_delivery_completed(
        self, event_type: str, delivered: bool, channel_count: int
    ) -> None:
        """Record the aggregated outcome for an event."""
        ...

    def with_context(self, context: ObservationContext) -> NotificationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultNotificationProbe:
    """Default implementation of NotificationProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger().bind(component="notifications")
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultNotificationProbe:
        """Create a new probe with observation context bound."""
        return DefaultNotificationProbe(logger=self._logger, context=context)

    def notification_sent(
        self, channel: str, provider: str, provider_message_id: str | None
    ) -> None:
        self._logger.info(
            "notification_sent",
            channel=channel,
            provider=provider,
            provider_message_id=provider_message_id,
            **self._get_context_kwargs(),
        )

    def notification_failed(
        self, channel: str, error_code: str | None, error: str | None, retryable: bool
    ) -> None:
        self._logger.warning(
            "notification_failed",
            channel=channel,
            error_code=error_code,
            error=error,
            retryable=retryable,
            **self._get_context_kwargs(),
        )

    def no_preferences(self, customer_id: str, event_type: str) -> None:
        self._logger.debug(
            "notification_no_preferences",
            customer_id=customer_id,
            event_type=event_type,
            **self._get_context_kwargs(),
        )

    def template_missing(self, event_type: str, channel: str, locale: str) -> None:
        self._logger.error(
            "notification_template_missing",
            event_type=event_type,
            channel=channel,
            locale=locale,
            **self._get_context_kwargs(),
        )

    def template_fallback_used(self, requested_locale: str, used_locale: str) -> None:
        self._logger.debug(
            "notification_template_fallback_used",
            requested_locale=requested_locale,
            used_locale=used_locale,
            **self._get_context_kwargs(),
        )

    def provider_missing(self, channel: str) -> None:
        self._logger.error(
            "notification_provider_missing",
            channel=channel,
            **self._get_context_kwargs(),
        )

    def provider_registered(self, name: str, channels: list[str]) -> None:
        self._logger.info(
            "notification_provider_registered",
            provider=name,
            channels=channels,
            **self._get_context_kwargs(),
        )

    def event_delivery_completed(
        self, event_type: str, delivered: bool, channel_count: int
    ) -> None:
        self._logger.info(
            "notification_event_delivery_completed",
            event_type=event_type,
            delivered=delivered,
            channel_count=channel_count,
            **self._get_context_kwargs(),
        )
