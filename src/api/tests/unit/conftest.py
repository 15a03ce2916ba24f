"""Unit test fixtures with mocked dependencies."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from infrastructure.settings import OutboxSettings
from shared_kernel.outbox.value_objects import OutboxEvent, OutboxStatus


@pytest.fixture
def outbox_settings():
    """Outbox settings with short intervals and a small executor."""
    return OutboxSettings(
        enabled=True,
        poll_interval_seconds=1,
        retry_interval_seconds=1,
        batch_size=10,
        max_retries=3,
        executor_max_workers=2,
        executor_queue_capacity=2,
        instance_id="test-instance",
    )


@pytest.fixture
def make_event():
    """Factory for OutboxEvent snapshots."""

    def _make(**overrides) -> OutboxEvent:
        now = datetime(2026, 1, 8, 12, 0, 0, tzinfo=UTC)
        values = dict(
            id=uuid4(),
            tenant_id="tenant-1",
            event_type="ORDER_PLACED",
            aggregate_id="order-1",
            aggregate_type="order",
            event_data='{"customerId": "cust-1", "orderId": "X1"}',
            status=OutboxStatus.PENDING,
            created_at=now,
            updated_at=now + timedelta(seconds=1),
        )
        values.update(overrides)
        return OutboxEvent(**values)

    return _make


@pytest.fixture
def mock_outbox_service():
    """OutboxEventService double whose transitions all succeed."""
    service = MagicMock()
    service.fetch_ready_events = AsyncMock(return_value=[])
    service.fetch_retryable_events = AsyncMock(return_value=[])
    service.claim_for_processing = AsyncMock(return_value=True)
    service.mark_completed = AsyncMock(return_value=True)
    service.mark_failed = AsyncMock(return_value=True)
    service.mark_dead_letter = AsyncMock(return_value=True)
    service.reset_stuck_events = AsyncMock(return_value=0)
    service.cleanup_older_than = AsyncMock(return_value=0)
    return service
