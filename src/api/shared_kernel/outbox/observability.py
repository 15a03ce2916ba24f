"""Observability probes for the outbox service, processor and scheduler.

Following Domain Oriented Observability, probes capture domain-significant
events and metrics without cluttering business logic with logging concerns.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class _ContextualProbe:
    """Shared logger and context plumbing for the default probes."""

    component: str = "outbox"

    def __init__(
        self,
        logger: Any | None = None,
        context: ObservationContext | None = None,
    ) -> None:
        self._logger = logger or structlog.get_logger().bind(component=self.component)
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext):
        """Create a new probe with observation context bound."""
        return type(self)(logger=self._logger, context=context)


class OutboxEventServiceProbe(Protocol):
    """Protocol for outbox state-transition observability."""

    def event_created(self, event_id: UUID, tenant_id: str, event_type: str) -> None:
        """Called when an event is appended to the outbox."""
        ...

    def event_claimed(self, event_id: UUID, instance_id: str) -> None:
        """Called when an instance wins the claim on an event."""
        ...

    def claim_conflict(self, event_id: UUID, instance_id: str) -> None:
        """Called when a claim loses the version race."""
        ...

    def event_completed(self, event_id: UUID) -> None:
        """Called when an event is delivered."""
        ...

    def event_failed(
        self,
        event_id: UUID,
        error: str,
        retry_count: int,
        next_retry_at: datetime,
    ) -> None:
        """Called when an event fails and is scheduled for retry."""
        ...

    def event_dead_lettered(
        self, event_id: UUID, error: str, retry_count: int, error_code: str | None
    ) -> None:
        """Called when an event is moved to DEAD_LETTER."""
        ...

    def event_reset(self, event_id: UUID) -> None:
        """Called when an operator resets an event for redelivery."""
        ...

    def stuck_events_reset(self, count: int, threshold_minutes: float) -> None:
        """Called after stuck PROCESSING events are reclaimed."""
        ...

    def events_cleaned_up(self, count: int, retention_days: int) -> None:
        """Called after terminal events are deleted by retention."""
        ...

    def transition_rejected(self, event_id: UUID, operation: str, reason: str) -> None:
        """Called when a transition does not apply to the event's current state."""
        ...

    def with_context(self, context: ObservationContext) -> OutboxEventServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultOutboxEventServiceProbe(_ContextualProbe):
    """Default implementation using structlog."""

    component = "outbox_service"

    def event_created(self, event_id: UUID, tenant_id: str, event_type: str) -> None:
        self._logger.info(
            "outbox_event_created",
            event_id=str(event_id),
            tenant_id=tenant_id,
            event_type=event_type,
            **self._get_context_kwargs(),
        )

    def event_claimed(self, event_id: UUID, instance_id: str) -> None:
        self._logger.debug(
            "outbox_event_claimed",
            event_id=str(event_id),
            instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def claim_conflict(self, event_id: UUID, instance_id: str) -> None:
        self._logger.debug(
            "outbox_claim_conflict",
            event_id=str(event_id),
            instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def event_completed(self, event_id: UUID) -> None:
        self._logger.info(
            "outbox_event_completed",
            event_id=str(event_id),
            **self._get_context_kwargs(),
        )

    def event_failed(
        self,
        event_id: UUID,
        error: str,
        retry_count: int,
        next_retry_at: datetime,
    ) -> None:
        self._logger.warning(
            "outbox_event_failed",
            event_id=str(event_id),
            error=error,
            retry_count=retry_count,
            next_retry_at=next_retry_at.isoformat(),
            **self._get_context_kwargs(),
        )

    def event_dead_lettered(
        self, event_id: UUID, error: str, retry_count: int, error_code: str | None
    ) -> None:
        self._logger.error(
            "outbox_event_dead_lettered",
            event_id=str(event_id),
            error=error,
            retry_count=retry_count,
            error_code=error_code,
            **self._get_context_kwargs(),
        )

    def event_reset(self, event_id: UUID) -> None:
        self._logger.info(
            "outbox_event_reset",
            event_id=str(event_id),
            **self._get_context_kwargs(),
        )

    def stuck_events_reset(self, count: int, threshold_minutes: float) -> None:
        if count > 0:
            self._logger.warning(
                "outbox_stuck_events_reset",
                count=count,
                threshold_minutes=threshold_minutes,
                **self._get_context_kwargs(),
            )

    def events_cleaned_up(self, count: int, retention_days: int) -> None:
        self._logger.info(
            "outbox_events_cleaned_up",
            count=count,
            retention_days=retention_days,
            **self._get_context_kwargs(),
        )

    def transition_rejected(self, event_id: UUID, operation: str, reason: str) -> None:
        self._logger.warning(
            "outbox_transition_rejected",
            event_id=str(event_id),
            operation=operation,
            reason=reason,
            **self._get_context_kwargs(),
        )


class OutboxProcessorProbe(Protocol):
    """Protocol for outbox processor observability."""

    def processor_started(self, instance_id: str) -> None:
        """Called when the processor schedules its sweeps."""
        ...

    def processor_stopped(self, instance_id: str) -> None:
        """Called when the processor has shut down."""
        ...

    def processor_disabled(self) -> None:
        """Called when start() is skipped because the outbox is disabled."""
        ...

    def sweep_completed(self, sweep: str, claimed: int, skipped: int) -> None:
        """Called when a ready or retry sweep finishes."""
        ...

    def dispatch_failed(self, event_id: UUID, error: str) -> None:
        """Called when a handler raised while delivering an event."""
        ...

    def executor_saturated(self, sweep: str, remaining: int) -> None:
        """Called when a sweep stops early because the executor is full."""
        ...

    def trigger_requested(self) -> None:
        """Called when processing is triggered on demand."""
        ...


class DefaultOutboxProcessorProbe(_ContextualProbe):
    """Default implementation using structlog."""

    component = "outbox_processor"

    def processor_started(self, instance_id: str) -> None:
        self._logger.info(
            "outbox_processor_started",
            instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def processor_stopped(self, instance_id: str) -> None:
        self._logger.info(
            "outbox_processor_stopped",
            instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def processor_disabled(self) -> None:
        self._logger.info("outbox_processor_disabled", **self._get_context_kwargs())

    def sweep_completed(self, sweep: str, claimed: int, skipped: int) -> None:
        if claimed > 0 or skipped > 0:
            self._logger.info(
                "outbox_sweep_completed",
                sweep=sweep,
                claimed=claimed,
                skipped=skipped,
                **self._get_context_kwargs(),
            )

    def dispatch_failed(self, event_id: UUID, error: str) -> None:
        self._logger.warning(
            "outbox_dispatch_failed",
            event_id=str(event_id),
            error=error,
            **self._get_context_kwargs(),
        )

    def executor_saturated(self, sweep: str, remaining: int) -> None:
        self._logger.warning(
            "outbox_executor_saturated",
            sweep=sweep,
            remaining=remaining,
            **self._get_context_kwargs(),
        )

    def trigger_requested(self) -> None:
        self._logger.info("outbox_trigger_requested", **self._get_context_kwargs())


class SchedulerProbe(Protocol):
    """Protocol for periodic job observability."""

    def job_scheduled(self, name: str, interval_seconds: float) -> None:
        """Called when a periodic job is registered."""
        ...

    def job_failed(self, name: str, error: str) -> None:
        """Called when a single run of a periodic job raised."""
        ...

    def scheduler_stopped(self, job_count: int) -> None:
        """Called when all periodic jobs have been cancelled."""
        ...


class DefaultSchedulerProbe(_ContextualProbe):
    """Default implementation using structlog."""

    component = "scheduler"

    def job_scheduled(self, name: str, interval_seconds: float) -> None:
        self._logger.info(
            "scheduler_job_scheduled",
            job=name,
            interval_seconds=interval_seconds,
            **self._get_context_kwargs(),
        )

    def job_failed(self, name: str, error: str) -> None:
        self._logger.error(
            "scheduler_job_failed",
            job=name,
            error=error,
            **self._get_context_kwargs(),
        )

    def scheduler_stopped(self, job_count: int) -> None:
        self._logger.info(
            "scheduler_stopped",
            job_count=job_count,
            **self._get_context_kwargs(),
        )
