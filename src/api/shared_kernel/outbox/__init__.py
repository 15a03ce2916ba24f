"""Outbox pattern implementation for reliable event delivery.

This module provides the transactional outbox pattern: domain events are
recorded in the same transaction as the business change and delivered
asynchronously with retries, dead-lettering and stuck-claim recovery.
"""

from shared_kernel.outbox.backoff import BackoffPolicy
from shared_kernel.outbox.exceptions import (
    NonRetryableDeliveryError,
    OutboxDeliveryError,
    OutboxEventNotFoundError,
)
from shared_kernel.outbox.ports import IOutboxRepository, OutboxEventHandler
from shared_kernel.outbox.value_objects import (
    OutboxEvent,
    OutboxStatistics,
    OutboxStatus,
)

__all__ = [
    "BackoffPolicy",
    "IOutboxRepository",
    "NonRetryableDeliveryError",
    "OutboxDeliveryError",
    "OutboxEvent",
    "OutboxEventHandler",
    "OutboxEventNotFoundError",
    "OutboxStatistics",
    "OutboxStatus",
]
