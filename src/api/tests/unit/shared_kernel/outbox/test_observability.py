"""Unit tests for outbox observability probes.

These tests verify the probe protocols and default implementations.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

from shared_kernel.observability_context import ObservationContext
from shared_kernel.outbox.observability import (
    DefaultOutboxEventServiceProbe,
    DefaultOutboxProcessorProbe,
    DefaultSchedulerProbe,
    OutboxEventServiceProbe,
    OutboxProcessorProbe,
    SchedulerProbe,
)


class TestOutboxEventServiceProbe:
    """Tests for DefaultOutboxEventServiceProbe."""

    def test_implements_protocol(self):
        probe: OutboxEventServiceProbe = DefaultOutboxEventServiceProbe()
        assert callable(probe.event_dead_lettered)

    def test_all_methods_accept_their_arguments(self):
        """Every probe method should run without raising."""
        probe = DefaultOutboxEventServiceProbe()
        event_id = uuid4()

        probe.event_created(event_id, "tenant-1", "ORDER_PLACED")
        probe.event_claimed(event_id, "host-1")
        probe.claim_conflict(event_id, "host-2")
        probe.event_completed(event_id)
        probe.event_failed(
            event_id, "timeout", 1, datetime(2026, 1, 8, 12, 1, tzinfo=UTC)
        )
        probe.event_dead_lettered(event_id, "boom", 4, "MAX_RETRIES_EXCEEDED")
        probe.event_reset(event_id)
        probe.stuck_events_reset(2, 60)
        probe.events_cleaned_up(10, 7)
        probe.transition_rejected(event_id, "complete", "status_failed")

    def test_logs_event_id_as_string(self):
        logger = MagicMock()
        probe = DefaultOutboxEventServiceProbe(logger=logger)
        event_id = uuid4()

        probe.event_completed(event_id)

        logger.info.assert_called_once()
        assert logger.info.call_args.kwargs["event_id"] == str(event_id)

    def test_dead_letter_logs_at_error_level(self):
        logger = MagicMock()
        probe = DefaultOutboxEventServiceProbe(logger=logger)

        probe.event_dead_lettered(uuid4(), "boom", 4, "MAX_RETRIES_EXCEEDED")

        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["error_code"] == "MAX_RETRIES_EXCEEDED"

    def test_with_context_adds_context_fields(self):
        logger = MagicMock()
        probe = DefaultOutboxEventServiceProbe(logger=logger).with_context(
            ObservationContext(request_id="req-1", tenant_id="tenant-9")
        )

        probe.event_reset(uuid4())

        kwargs = logger.info.call_args.kwargs
        assert kwargs["request_id"] == "req-1"
        assert kwargs["tenant_id"] == "tenant-9"


class TestOutboxProcessorProbe:
    """Tests for DefaultOutboxProcessorProbe."""

    def test_implements_protocol(self):
        probe: OutboxProcessorProbe = DefaultOutboxProcessorProbe()
        assert callable(probe.sweep_completed)

    def test_all_methods_accept_their_arguments(self):
        probe = DefaultOutboxProcessorProbe()

        probe.processor_started("host-1")
        probe.processor_stopped("host-1")
        probe.processor_disabled()
        probe.sweep_completed("outbox_ready_sweep", 3, 1)
        probe.dispatch_failed(uuid4(), "provider down")
        probe.executor_saturated("outbox_ready_sweep", 5)
        probe.trigger_requested()


class TestSchedulerProbe:
    """Tests for DefaultSchedulerProbe."""

    def test_implements_protocol(self):
        probe: SchedulerProbe = DefaultSchedulerProbe()
        assert callable(probe.job_failed)

    def test_all_methods_accept_their_arguments(self):
        probe = DefaultSchedulerProbe()

        probe.job_scheduled("outbox_ready_sweep", 5)
        probe.job_failed("outbox_ready_sweep", "database unavailable")
        probe.scheduler_stopped(4)
