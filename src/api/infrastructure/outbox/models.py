"""SQLAlchemy ORM models for the outbox pattern.

This module provides the database model for the outbox_events table used in
the transactional outbox pattern.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin
from shared_kernel.outbox.value_objects import OutboxEvent, OutboxStatus


class OutboxEventModel(TimestampMixin, Base):
    """ORM model for the outbox_events table.

    Stores domain events recorded alongside business changes until they are
    delivered. Indexes support the processor's sweeps:
    - ix_outbox_events_status_created: ready sweep (PENDING, oldest first)
    - ix_outbox_events_next_retry: retry sweep
    - ix_outbox_events_processed_at: retention sweep
    """

    __tablename__ = "outbox_events"
    __table_args__ = (
        Index("ix_outbox_events_status_created", "status", "created_at"),
        Index("ix_outbox_events_tenant_type", "tenant_id", "event_type"),
        Index("ix_outbox_events_next_retry", "next_retry_at"),
        Index("ix_outbox_events_processed_at", "processed_at"),
        Index("ix_outbox_events_aggregate", "aggregate_type", "aggregate_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(255), nullable=False)
    aggregate_id: Mapped[str] = mapped_column(String(255), nullable=False)
    aggregate_type: Mapped[str] = mapped_column(String(255), nullable=False)
    event_data: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=OutboxStatus.PENDING.value
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    next_retry_at: Mapped[datetime | None] = mapped_column(nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_stack_trace: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_attempt_at: Mapped[datetime | None] = mapped_column(nullable=True)
    processing_instance_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @classmethod
    def from_value_object(cls, event: OutboxEvent) -> OutboxEventModel:
        """Build an ORM row from an OutboxEvent value object."""
        return cls(
            id=event.id,
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
            aggregate_type=event.aggregate_type,
            event_data=event.event_data,
            status=event.status.value,
            retry_count=event.retry_count,
            max_retries=event.max_retries,
            next_retry_at=event.next_retry_at,
            error_message=event.error_message,
            error_stack_trace=event.error_stack_trace,
            error_code=event.error_code,
            event_metadata=dict(event.metadata),
            created_at=event.created_at,
            updated_at=event.updated_at,
            processed_at=event.processed_at,
            last_attempt_at=event.last_attempt_at,
            processing_instance_id=event.processing_instance_id,
            version=event.version,
        )

    def to_value_object(self) -> OutboxEvent:
        """Convert this ORM model to an OutboxEvent value object.

        Returns:
            An immutable OutboxEvent with all fields copied from this model.
        """
        return OutboxEvent(
            id=self.id,
            tenant_id=self.tenant_id,
            event_type=self.event_type,
            aggregate_id=self.aggregate_id,
            aggregate_type=self.aggregate_type,
            event_data=self.event_data,
            status=OutboxStatus(self.status),
            retry_count=self.retry_count,
            max_retries=self.max_retries,
            next_retry_at=self.next_retry_at,
            error_message=self.error_message,
            error_stack_trace=self.error_stack_trace,
            error_code=self.error_code,
            metadata=dict(self.event_metadata or {}),
            created_at=self.created_at,
            updated_at=self.updated_at,
            processed_at=self.processed_at,
            last_attempt_at=self.last_attempt_at,
            processing_instance_id=self.processing_instance_id,
            version=self.version,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<OutboxEventModel("
            f"id={self.id}, "
            f"event_type={self.event_type}, "
            f"status={self.status}, "
            f"retry_count={self.retry_count}, "
            f"version={self.version}"
            f")>"
        )
