"""Value objects for the outbox pattern.

Value objects are immutable descriptors that provide type safety and
domain semantics for outbox events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID


class OutboxStatus(StrEnum):
    """Lifecycle states of an outbox event."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    DEAD_LETTER = "DEAD_LETTER"

    @property
    def is_terminal(self) -> bool:
        """Terminal states are only left through a manual reset."""
        return self in TERMINAL_STATUSES

    @property
    def is_claimable(self) -> bool:
        return self in CLAIMABLE_STATUSES


TERMINAL_STATUSES = frozenset({OutboxStatus.COMPLETED, OutboxStatus.DEAD_LETTER})
CLAIMABLE_STATUSES = frozenset({OutboxStatus.PENDING, OutboxStatus.FAILED})


@dataclass(frozen=True)
class OutboxEvent:
    """Represents a single row of the outbox_events table.

    This is an immutable snapshot of the event as it existed in the
    database when it was read. Writers use ``version`` to perform a
    compare-and-set on the row.

    Attributes:
        id: Unique identifier for the event
        tenant_id: Tenant that owns the event
        event_type: Domain event tag (e.g., "ORDER_PLACED")
        aggregate_id: Identifier of the aggregate the event is about
        aggregate_type: Type of the aggregate (e.g., "order")
        event_data: Serialized payload (JSON text)
        status: Current lifecycle state
        retry_count: Number of failed attempts so far
        max_retries: Failures tolerated before dead-lettering
        next_retry_at: When a FAILED event becomes eligible again
        error_message: Last failure message
        error_stack_trace: Last failure traceback
        error_code: Machine-readable code of the last failure
        metadata: Free-form key/value map
        created_at: When the event was appended
        updated_at: When the row last changed
        processed_at: When the event reached a terminal state
        last_attempt_at: When the event was last claimed
        processing_instance_id: Processor instance holding the claim
        version: Optimistic-concurrency counter
    """

    id: UUID
    tenant_id: str
    event_type: str
    aggregate_id: str
    aggregate_type: str
    event_data: str
    status: OutboxStatus
    created_at: datetime
    updated_at: datetime
    retry_count: int = 0
    max_retries: int = 3
    next_retry_at: datetime | None = None
    error_message: str | None = None
    error_stack_trace: str | None = None
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    processed_at: datetime | None = None
    last_attempt_at: datetime | None = None
    processing_instance_id: str | None = None
    version: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_claimed(self) -> bool:
        return self.status == OutboxStatus.PROCESSING

    @property
    def retries_exhausted(self) -> bool:
        """Check whether the next failure would dead-letter the event."""
        return self.retry_count >= self.max_retries


@dataclass(frozen=True)
class OutboxStatistics:
    """Event counts per status, as reported to operators."""

    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    dead_letter: int = 0

    @property
    def total(self) -> int:
        return (
            self.pending
            + self.processing
            + self.completed
            + self.failed
            + self.dead_letter
        )

    @classmethod
    def from_counts(cls, counts: dict[OutboxStatus, int]) -> OutboxStatistics:
        """Build statistics from a status -> count mapping.

        Statuses missing from the mapping count as zero.
        """
        return cls(
            pending=counts.get(OutboxStatus.PENDING, 0),
            processing=counts.get(OutboxStatus.PROCESSING, 0),
            completed=counts.get(OutboxStatus.COMPLETED, 0),
            failed=counts.get(OutboxStatus.FAILED, 0),
            dead_letter=counts.get(OutboxStatus.DEAD_LETTER, 0),
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "pending": self.pending,
            "processing": self.processing,
            "completed": self.completed,
            "failed": self.failed,
            "dead_letter": self.dead_letter,
            "total": self.total,
        }
