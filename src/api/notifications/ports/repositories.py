"""Repository protocols (ports) for the notifications bounded context.

Templates and preferences are read-mostly inputs to delivery; the outbox
never owns them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from notifications.domain.value_objects import (
        CustomerNotificationPreference,
        NotificationChannel,
        NotificationTemplate,
    )


@runtime_checkable
class ITemplateRepository(Protocol):
    """Repository for notification templates."""

    async def find_active(
        self,
        tenant_id: str,
        event_type: str,
        channel: NotificationChannel,
        locale: str,
    ) -> NotificationTemplate | None:
        """Find the active template for an exact (tenant, event, channel, locale).

        Returns:
            The template, or None if there is no active exact match
        """
        ...

    async def save(self, template: NotificationTemplate) -> None:
        """Create or replace the template for its (tenant, event, channel, locale)."""
        ...


@runtime_checkable
class IPreferenceRepository(Protocol):
    """Repository for customer notification preferences."""

    async def list_enabled(
        self,
        tenant_id: str,
        customer_id: str,
        event_type: str,
    ) -> list[CustomerNotificationPreference]:
        """List the customer's enabled preferences for an event type.

        Returns:
            Enabled preferences ordered by channel
        """
        ...

    async def get(
        self,
        tenant_id: str,
        customer_id: str,
        event_type: str,
        channel: NotificationChannel,
    ) -> CustomerNotificationPreference | None:
        """Get the preference for one channel, enabled or not."""
        ...

    async def save(self, preference: CustomerNotificationPreference) -> None:
        """Create or replace a preference."""
        ...
