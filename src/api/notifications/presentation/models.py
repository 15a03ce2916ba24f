"""Pydantic models for outbox operator API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from shared_kernel.outbox.value_objects import (
    OutboxEvent,
    OutboxStatistics,
    OutboxStatus,
)


class OutboxEventResponse(BaseModel):
    """Response model for an outbox event."""

    id: UUID
    tenant_id: str
    event_type: str
    aggregate_type: str
    aggregate_id: str
    status: OutboxStatus
    retry_count: int
    max_retries: int
    next_retry_at: datetime | None = None
    error_code: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None
    last_attempt_at: datetime | None = None
    processing_instance_id: str | None = None
    version: int

    @classmethod
    def from_domain(cls, event: OutboxEvent) -> OutboxEventResponse:
        """Convert an OutboxEvent value object to an API response.

        The stack trace is omitted; it stays in the database for debugging.
        """
        return cls(
            id=event.id,
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            status=event.status,
            retry_count=event.retry_count,
            max_retries=event.max_retries,
            next_retry_at=event.next_retry_at,
            error_code=event.error_code,
            error_message=event.error_message,
            created_at=event.created_at,
            updated_at=event.updated_at,
            processed_at=event.processed_at,
            last_attempt_at=event.last_attempt_at,
            processing_instance_id=event.processing_instance_id,
            version=event.version,
        )


class OutboxStatisticsResponse(BaseModel):
    """Event counts per status."""

    pending: int
    processing: int
    completed: int
    failed: int
    dead_letter: int
    total: int

    @classmethod
    def from_domain(cls, statistics: OutboxStatistics) -> OutboxStatisticsResponse:
        return cls(**statistics.as_dict())


class OutboxHealthResponse(BaseModel):
    """Outbox statistics together with the processor's status."""

    status: str = Field(..., description="ok when the processor is running or disabled")
    statistics: OutboxStatisticsResponse
    processor: dict[str, Any]


class TriggerResponse(BaseModel):
    """Number of events claimed by an on-demand run."""

    ready: int
    retry: int
