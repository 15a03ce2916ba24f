"""Protocols (ports) for the outbox pattern.

These protocols define the interfaces for outbox persistence and event
handling. The processor depends only on them, so any bounded context can
plug in its own handler without the outbox knowing about it.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from shared_kernel.outbox.value_objects import OutboxEvent, OutboxStatus


@runtime_checkable
class IOutboxRepository(Protocol):
    """Repository for outbox event persistence.

    The repository shares the same database session as the calling service,
    ensuring that event appends happen within the same transaction as the
    business change. It never commits.
    """

    async def add(self, event: "OutboxEvent") -> None:
        """Stage a new event in the current transaction."""
        ...

    async def get(self, event_id: UUID) -> "OutboxEvent | None":
        """Read a single event by id."""
        ...

    async def fetch_ready(self, limit: int) -> list["OutboxEvent"]:
        """Fetch PENDING events, oldest first."""
        ...

    async def fetch_retryable(self, now: datetime, limit: int) -> list["OutboxEvent"]:
        """Fetch FAILED events whose next_retry_at has passed."""
        ...

    async def fetch_dead_letter(
        self, limit: int = 100, offset: int = 0, tenant_id: str | None = None
    ) -> list["OutboxEvent"]:
        """Fetch DEAD_LETTER events, most recently failed first."""
        ...

    async def fetch_by_aggregate(
        self, aggregate_type: str, aggregate_id: str
    ) -> list["OutboxEvent"]:
        """Fetch every event recorded for an aggregate, oldest first."""
        ...

    async def compare_and_set(
        self,
        event_id: UUID,
        expected_version: int,
        allowed_statuses: Collection["OutboxStatus"],
        values: Mapping[str, Any],
    ) -> bool:
        """Conditionally update a row, bumping its version.

        Args:
            event_id: Row to update
            expected_version: Version the caller last read
            allowed_statuses: Statuses the row must currently be in
            values: Column values to write

        Returns:
            True if exactly one row matched and was updated
        """
        ...

    async def reset_stuck(self, cutoff: datetime, now: datetime) -> int:
        """Return PROCESSING events last attempted before cutoff to PENDING."""
        ...

    async def delete_terminal_older_than(self, cutoff: datetime) -> int:
        """Delete COMPLETED/DEAD_LETTER rows whose terminal time is before cutoff."""
        ...

    async def count_by_status(
        self, tenant_id: str | None = None
    ) -> dict["OutboxStatus", int]:
        """Count events per status, optionally for a single tenant."""
        ...


@runtime_checkable
class OutboxEventHandler(Protocol):
    """Delivers a claimed outbox event.

    Returning normally means the event was delivered. Raising
    NonRetryableDeliveryError dead-letters the event; any other exception
    schedules a retry.
    """

    async def handle(self, event: "OutboxEvent") -> None:
        """Deliver the event.

        Args:
            event: The claimed event

        Raises:
            NonRetryableDeliveryError: Delivery can never succeed as configured
            OutboxDeliveryError: Delivery failed transiently
        """
        ...
