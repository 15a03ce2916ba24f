"""Outbox processor: scheduled sweeps that deliver outbox events.

The processor runs as background jobs within the FastAPI application.
Four independent sweeps are scheduled on fixed intervals:

1. Ready sweep: claims PENDING events, oldest first, and dispatches them
2. Retry sweep: claims FAILED events whose next_retry_at has passed
3. Stuck sweep: returns abandoned PROCESSING claims to PENDING
4. Cleanup sweep: deletes terminal events past the retention window

Claims are version-guarded, so overlapping sweeps and multiple processor
instances never dispatch the same event concurrently.
"""

from __future__ import annotations

import asyncio
import socket
import traceback
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from infrastructure.scheduling import BoundedExecutor, PeriodicScheduler
from shared_kernel.outbox.exceptions import (
    ExecutorSaturatedError,
    NonRetryableDeliveryError,
)
from shared_kernel.outbox.observability import (
    DefaultOutboxProcessorProbe,
    DefaultSchedulerProbe,
)

if TYPE_CHECKING:
    from infrastructure.outbox.service import OutboxEventService
    from infrastructure.settings import OutboxSettings
    from shared_kernel.outbox.observability import OutboxProcessorProbe
    from shared_kernel.outbox.ports import OutboxEventHandler
    from shared_kernel.outbox.value_objects import OutboxEvent

READY_SWEEP = "outbox_ready_sweep"
RETRY_SWEEP = "outbox_retry_sweep"
STUCK_SWEEP = "outbox_stuck_sweep"
CLEANUP_SWEEP = "outbox_cleanup_sweep"


def generate_instance_id() -> str:
    """Build a processor instance id unique across hosts and restarts."""
    return f"{socket.gethostname()}-{uuid4().hex[:8]}"


class OutboxProcessor:
    """Claims outbox events and hands them to an event handler.

    The processor is handler-agnostic: any OutboxEventHandler can be plugged
    in. A handler that returns normally completes the event; one that raises
    NonRetryableDeliveryError dead-letters it; any other exception records a
    failure that is retried with backoff.
    """

    def __init__(
        self,
        service: OutboxEventService,
        handler: OutboxEventHandler,
        settings: OutboxSettings,
        probe: OutboxProcessorProbe | None = None,
        scheduler: PeriodicScheduler | None = None,
        executor: BoundedExecutor | None = None,
        shutdown_timeout_seconds: float = 30,
    ) -> None:
        """Initialize the processor.

        Args:
            service: Outbox state-transition service
            handler: Delivers claimed events
            settings: Intervals, batch size and pool sizes
            probe: Observability probe for logging/metrics
            scheduler: Periodic job runner
            executor: Bounded pool that runs deliveries
            shutdown_timeout_seconds: How long stop() waits for deliveries
        """
        self._service = service
        self._handler = handler
        self._settings = settings
        self._probe = probe or DefaultOutboxProcessorProbe()
        self._scheduler = scheduler or PeriodicScheduler(DefaultSchedulerProbe())
        self._executor = executor or BoundedExecutor(
            max_workers=settings.executor_max_workers,
            queue_capacity=settings.executor_queue_capacity,
        )
        self._shutdown_timeout = shutdown_timeout_seconds
        self._instance_id = settings.instance_id or generate_instance_id()
        self._running = False

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Schedule the four sweeps.

        Does nothing when the outbox is disabled in settings.
        """
        if not self._settings.enabled:
            self._probe.processor_disabled()
            return
        if self._running:
            return

        self._executor.reopen()
        self._scheduler.clear()
        self._scheduler.run_every(
            READY_SWEEP, self._settings.poll_interval_seconds, self.run_ready_sweep
        )
        self._scheduler.run_every(
            RETRY_SWEEP, self._settings.retry_interval_seconds, self.run_retry_sweep
        )
        self._scheduler.run_every(
            STUCK_SWEEP,
            self._settings.stuck_check_interval_seconds,
            self.run_stuck_sweep,
        )
        self._scheduler.run_every(
            CLEANUP_SWEEP,
            self._settings.cleanup_interval_seconds,
            self.run_cleanup_sweep,
        )
        self._scheduler.start()
        self._running = True
        self._probe.processor_started(self._instance_id)

    async def stop(self) -> None:
        """Cancel the sweeps and drain in-flight deliveries.

        Deliveries still running after the shutdown timeout are cancelled;
        their events stay PROCESSING and are recovered by the stuck sweep.
        """
        if not self._running:
            return
        self._running = False
        await self._scheduler.stop()
        await self._executor.shutdown(timeout=self._shutdown_timeout)
        self._probe.processor_stopped(self._instance_id)

    async def run_ready_sweep(self) -> int:
        """Claim and dispatch a batch of PENDING events.

        Returns:
            Number of events claimed by this instance
        """
        events = await self._service.fetch_ready_events(self._settings.batch_size)
        return await self._claim_and_dispatch(READY_SWEEP, events)

    async def run_retry_sweep(self) -> int:
        """Claim and dispatch FAILED events that are due for retry.

        Returns:
            Number of events claimed by this instance
        """
        events = await self._service.fetch_retryable_events(self._settings.batch_size)
        return await self._claim_and_dispatch(RETRY_SWEEP, events)

    async def run_stuck_sweep(self) -> int:
        """Reclaim PROCESSING events abandoned past the stuck threshold.

        This is the only path that takes an event out of PROCESSING without
        an outcome from its handler.
        """
        return await self._service.reset_stuck_events(self._settings.stuck_threshold)

    async def run_cleanup_sweep(self) -> int:
        """Delete terminal events older than the retention window."""
        return await self._service.cleanup_older_than(self._settings.retention_days)

    async def trigger_processing(self) -> dict[str, int]:
        """Run the ready and retry sweeps once, outside the schedule."""
        self._probe.trigger_requested()
        ready = await self.run_ready_sweep()
        retried = await self.run_retry_sweep()
        return {"ready": ready, "retry": retried}

    async def wait_idle(self) -> None:
        """Wait until every dispatched delivery has recorded its outcome."""
        await self._executor.join()

    def status(self) -> dict[str, Any]:
        """Describe the processor for health endpoints."""
        return {
            "instance_id": self._instance_id,
            "enabled": self._settings.enabled,
            "running": self._running,
            "batch_size": self._settings.batch_size,
            "poll_interval_seconds": self._settings.poll_interval_seconds,
            "retry_interval_seconds": self._settings.retry_interval_seconds,
            "stuck_threshold_minutes": self._settings.stuck_threshold_minutes,
            "in_flight": self._executor.in_flight,
            "max_workers": self._executor.max_workers,
        }

    async def _claim_and_dispatch(self, sweep: str, events: list[OutboxEvent]) -> int:
        claimed = 0
        skipped = 0
        for index, event in enumerate(events):
            if not self._executor.has_capacity():
                self._probe.executor_saturated(sweep, len(events) - index)
                break

            won = await self._service.claim_for_processing(
                event.id, self._instance_id, expected_version=event.version
            )
            if not won:
                # Another sweep or instance holds it
                skipped += 1
                continue

            claimed += 1
            # The claim bumped the version once
            claimed_version = event.version + 1
            try:
                self._executor.submit(
                    lambda e=event, v=claimed_version: self._deliver(e, v)
                )
            except ExecutorSaturatedError:
                await self._deliver(event, claimed_version)

        self._probe.sweep_completed(sweep, claimed, skipped)
        return claimed

    async def _deliver(self, event: OutboxEvent, claimed_version: int) -> None:
        try:
            await self._handler.handle(event)
        except asyncio.CancelledError:
            raise
        except NonRetryableDeliveryError as e:
            self._probe.dispatch_failed(event.id, str(e))
            await self._service.mark_dead_letter(
                event.id,
                str(e),
                _format_traceback(e),
                error_code=e.error_code,
                expected_version=claimed_version,
            )
        except Exception as e:
            self._probe.dispatch_failed(event.id, str(e))
            await self._service.mark_failed(
                event.id,
                str(e) or type(e).__name__,
                _format_traceback(e),
                error_code=getattr(e, "error_code", None),
                expected_version=claimed_version,
            )
        else:
            await self._service.mark_completed(
                event.id, expected_version=claimed_version
            )


def _format_traceback(error: BaseException) -> str:
    return "".join(traceback.format_exception(error))
