"""Exceptions raised by outbox handlers and services."""

from __future__ import annotations

from uuid import UUID


class OutboxEventNotFoundError(Exception):
    """Raised when an outbox event does not exist."""

    def __init__(self, event_id: UUID) -> None:
        super().__init__(f"Outbox event {event_id} not found")
        self.event_id = event_id


class OutboxDeliveryError(Exception):
    """Transient delivery failure; the event is retried with backoff."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class NonRetryableDeliveryError(OutboxDeliveryError):
    """Configuration failure; the event is dead-lettered immediately.

    Retrying cannot succeed until an operator fixes the data (missing
    template, missing contact, unconfigured provider, ...).
    """

    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message, error_code=error_code)


class ExecutorSaturatedError(Exception):
    """Raised when the bounded executor has no free worker or queue slot."""

    pass
