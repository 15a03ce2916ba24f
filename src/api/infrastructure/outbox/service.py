"""Outbox event service: lifecycle transitions for outbox events.

Every transition is a single version-guarded UPDATE. A transition that does
not apply (row missing, wrong state, lost race) returns False and is reported
to the probe; it never raises and never corrupts state.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, AsyncIterator
from uuid import UUID, uuid4

from infrastructure.outbox.repository import OutboxRepository
from shared_kernel.outbox.backoff import BackoffPolicy
from shared_kernel.outbox.exceptions import OutboxEventNotFoundError
from shared_kernel.outbox.observability import DefaultOutboxEventServiceProbe
from shared_kernel.outbox.value_objects import (
    CLAIMABLE_STATUSES,
    OutboxEvent,
    OutboxStatistics,
    OutboxStatus,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from shared_kernel.outbox.observability import OutboxEventServiceProbe
    from shared_kernel.outbox.ports import IOutboxRepository

MAX_RETRIES_EXCEEDED = "MAX_RETRIES_EXCEEDED"

_NON_TERMINAL = frozenset(
    {OutboxStatus.PENDING, OutboxStatus.PROCESSING, OutboxStatus.FAILED}
)
_RESETTABLE = frozenset(
    {
        OutboxStatus.PENDING,
        OutboxStatus.FAILED,
        OutboxStatus.COMPLETED,
        OutboxStatus.DEAD_LETTER,
    }
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OutboxEventService:
    """State-transition logic for the outbox.

    Producers call create_event inside their own unit of work. All other
    operations open a short transaction of their own through the session
    factory.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        backoff: BackoffPolicy | None = None,
        probe: OutboxEventServiceProbe | None = None,
        default_max_retries: int = 3,
        clock: Callable[[], datetime] = _utc_now,
        repository_factory: Callable[
            [AsyncSession], IOutboxRepository
        ] = OutboxRepository,
    ) -> None:
        """Initialize the service.

        Args:
            session_factory: Factory for creating database sessions
            backoff: Retry delay policy
            probe: Observability probe for logging/metrics
            default_max_retries: max_retries for events that don't set one
            clock: Source of the current UTC time
            repository_factory: Builds the repository bound to a session
        """
        self._session_factory = session_factory
        self._backoff = backoff or BackoffPolicy()
        self._probe = probe or DefaultOutboxEventServiceProbe()
        self._default_max_retries = default_max_retries
        self._clock = clock
        self._repository_factory = repository_factory

    @property
    def backoff(self) -> BackoffPolicy:
        return self._backoff

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[IOutboxRepository]:
        async with self._session_factory() as session, session.begin():
            yield self._repository_factory(session)

    async def create_event(
        self,
        session: AsyncSession | None,
        *,
        tenant_id: str,
        event_type: str,
        aggregate_id: str,
        aggregate_type: str,
        event_data: Any,
        metadata: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> OutboxEvent:
        """Record a new PENDING event.

        When a session is given the event joins the caller's transaction and
        is committed (or rolled back) with the business change. The session is
        never committed here. With ``session=None`` the event is written in a
        transaction of its own.

        Args:
            session: Caller's session, or None for a standalone write
            tenant_id: Owning tenant
            event_type: Event tag (e.g., "ORDER_PLACED")
            aggregate_id: Identifier of the aggregate
            aggregate_type: Type of the aggregate
            event_data: Payload; non-string values are JSON-encoded
            metadata: Free-form key/value map
            max_retries: Override for the default retry limit

        Returns:
            The staged event
        """
        if max_retries is not None and max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        now = self._clock()
        event = OutboxEvent(
            id=uuid4(),
            tenant_id=tenant_id,
            event_type=event_type,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            event_data=(
                event_data
                if isinstance(event_data, str)
                else json.dumps(event_data, default=str)
            ),
            status=OutboxStatus.PENDING,
            retry_count=0,
            max_retries=(
                max_retries if max_retries is not None else self._default_max_retries
            ),
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )

        if session is not None:
            await self._repository_factory(session).add(event)
        else:
            async with self._transaction() as repo:
                await repo.add(event)

        self._probe.event_created(event.id, tenant_id, event_type)
        return event

    async def claim_for_processing(
        self,
        event_id: UUID,
        instance_id: str,
        expected_version: int | None = None,
    ) -> bool:
        """Claim a PENDING or FAILED event for this instance.

        Args:
            event_id: Event to claim
            instance_id: Claiming processor instance
            expected_version: Version the caller read; the current row
                version is read first when omitted

        Returns:
            True if this call won the claim
        """
        now = self._clock()
        async with self._transaction() as repo:
            if expected_version is None:
                current = await repo.get(event_id)
                if current is None:
                    self._probe.transition_rejected(event_id, "claim", "not_found")
                    return False
                expected_version = current.version

            claimed = await repo.compare_and_set(
                event_id,
                expected_version,
                CLAIMABLE_STATUSES,
                {
                    "status": OutboxStatus.PROCESSING,
                    "processing_instance_id": instance_id,
                    "last_attempt_at": now,
                    "updated_at": now,
                },
            )

        if claimed:
            self._probe.event_claimed(event_id, instance_id)
        else:
            self._probe.claim_conflict(event_id, instance_id)
        return claimed

    async def mark_completed(
        self, event_id: UUID, expected_version: int | None = None
    ) -> bool:
        """Move a PROCESSING event to COMPLETED.

        Sets processed_at and clears the error fields. The claiming instance
        id is kept as a record of who delivered the event.
        """
        now = self._clock()
        async with self._transaction() as repo:
            current = await self._load(repo, event_id, "complete")
            if current is None or not self._version_matches(
                current, expected_version, "complete"
            ):
                return False
            if current.status != OutboxStatus.PROCESSING:
                self._probe.transition_rejected(
                    event_id, "complete", f"status_{current.status.value.lower()}"
                )
                return False

            completed = await repo.compare_and_set(
                event_id,
                current.version,
                {OutboxStatus.PROCESSING},
                {
                    "status": OutboxStatus.COMPLETED,
                    "processed_at": now,
                    "updated_at": now,
                    "next_retry_at": None,
                    "error_message": None,
                    "error_stack_trace": None,
                    "error_code": None,
                },
            )

        if completed:
            self._probe.event_completed(event_id)
        else:
            self._probe.transition_rejected(event_id, "complete", "version_conflict")
        return completed

    async def mark_failed(
        self,
        event_id: UUID,
        error_message: str,
        stack_trace: str | None = None,
        *,
        error_code: str | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """Record a failed delivery attempt.

        Increments retry_count. Once retry_count exceeds max_retries the event
        moves to DEAD_LETTER with error_code MAX_RETRIES_EXCEEDED; otherwise
        it becomes FAILED with
        ``next_retry_at = last attempt + backoff(retry_count)``.

        Args:
            event_id: Event that failed
            error_message: Failure message
            stack_trace: Formatted traceback
            error_code: Machine-readable failure code
            expected_version: Version the caller holds, if any

        Returns:
            True if the failure was recorded
        """
        now = self._clock()
        async with self._transaction() as repo:
            current = await self._load(repo, event_id, "fail")
            if current is None or not self._version_matches(
                current, expected_version, "fail"
            ):
                return False
            if current.status not in _NON_TERMINAL:
                self._probe.transition_rejected(
                    event_id, "fail", f"status_{current.status.value.lower()}"
                )
                return False

            retry_count = current.retry_count + 1
            values: dict[str, Any] = {
                "retry_count": retry_count,
                "error_message": error_message,
                "error_stack_trace": stack_trace,
                "processing_instance_id": None,
                "updated_at": now,
            }
            dead_letter = retry_count > current.max_retries
            if dead_letter:
                values.update(
                    status=OutboxStatus.DEAD_LETTER,
                    next_retry_at=None,
                    error_code=MAX_RETRIES_EXCEEDED,
                )
            else:
                attempted_at = max(now, current.last_attempt_at or now)
                next_retry_at = attempted_at + self._backoff.delay_for(retry_count)
                values.update(
                    status=OutboxStatus.FAILED,
                    next_retry_at=next_retry_at,
                    error_code=error_code,
                )

            recorded = await repo.compare_and_set(
                event_id, current.version, _NON_TERMINAL, values
            )

        if not recorded:
            self._probe.transition_rejected(event_id, "fail", "version_conflict")
        elif dead_letter:
            self._probe.event_dead_lettered(
                event_id, error_message, retry_count, values["error_code"]
            )
        else:
            self._probe.event_failed(
                event_id, error_message, retry_count, values["next_retry_at"]
            )
        return recorded

    async def mark_dead_letter(
        self,
        event_id: UUID,
        error_message: str,
        stack_trace: str | None = None,
        *,
        error_code: str | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """Dead-letter a non-terminal event immediately.

        Used for failures that no retry can fix. retry_count is still
        incremented so it reflects every attempt made.
        """
        now = self._clock()
        async with self._transaction() as repo:
            current = await self._load(repo, event_id, "dead_letter")
            if current is None or not self._version_matches(
                current, expected_version, "dead_letter"
            ):
                return False
            if current.status not in _NON_TERMINAL:
                self._probe.transition_rejected(
                    event_id, "dead_letter", f"status_{current.status.value.lower()}"
                )
                return False

            retry_count = current.retry_count + 1
            recorded = await repo.compare_and_set(
                event_id,
                current.version,
                _NON_TERMINAL,
                {
                    "status": OutboxStatus.DEAD_LETTER,
                    "retry_count": retry_count,
                    "error_message": error_message,
                    "error_stack_trace": stack_trace,
                    "error_code": error_code,
                    "next_retry_at": None,
                    "processing_instance_id": None,
                    "updated_at": now,
                },
            )

        if recorded:
            self._probe.event_dead_lettered(
                event_id, error_message, retry_count, error_code
            )
        else:
            self._probe.transition_rejected(event_id, "dead_letter", "version_conflict")
        return recorded

    async def reset_for_retry(self, event_id: UUID) -> bool:
        """Return an event to PENDING for redelivery (operator action).

        Clears retry_count, error fields, schedule and claim. Events that are
        currently PROCESSING are left alone; reset them once the claim
        completes or is reclaimed as stuck.
        """
        now = self._clock()
        async with self._transaction() as repo:
            current = await self._load(repo, event_id, "reset")
            if current is None:
                return False
            if current.status == OutboxStatus.PROCESSING:
                self._probe.transition_rejected(event_id, "reset", "status_processing")
                return False

            reset = await repo.compare_and_set(
                event_id,
                current.version,
                _RESETTABLE,
                {
                    "status": OutboxStatus.PENDING,
                    "retry_count": 0,
                    "next_retry_at": None,
                    "error_message": None,
                    "error_stack_trace": None,
                    "error_code": None,
                    "processing_instance_id": None,
                    "processed_at": None,
                    "updated_at": now,
                },
            )

        if reset:
            self._probe.event_reset(event_id)
        else:
            self._probe.transition_rejected(event_id, "reset", "version_conflict")
        return reset

    async def reset_stuck_events(self, threshold: timedelta) -> int:
        """Return PROCESSING events older than ``threshold`` to PENDING.

        The claim is cleared; retry_count is unchanged because the attempt
        never reported an outcome.

        Returns:
            Number of events reclaimed
        """
        now = self._clock()
        async with self._transaction() as repo:
            count = await repo.reset_stuck(now - threshold, now)
        self._probe.stuck_events_reset(count, threshold.total_seconds() / 60)
        return count

    async def cleanup_older_than(self, days: int) -> int:
        """Delete COMPLETED/DEAD_LETTER events that ended more than ``days`` ago.

        PENDING, PROCESSING and FAILED events are never deleted.

        Returns:
            Number of events deleted
        """
        if days < 0:
            raise ValueError("days must be >= 0")
        cutoff = self._clock() - timedelta(days=days)
        async with self._transaction() as repo:
            count = await repo.delete_terminal_older_than(cutoff)
        self._probe.events_cleaned_up(count, days)
        return count

    async def get_statistics(self, tenant_id: str | None = None) -> OutboxStatistics:
        """Count events per status, optionally for a single tenant."""
        async with self._session_factory() as session:
            repository = self._repository_factory(session)
            counts = await repository.count_by_status(tenant_id)
        return OutboxStatistics.from_counts(counts)

    async def get_event(self, event_id: UUID) -> OutboxEvent:
        """Read an event.

        Raises:
            OutboxEventNotFoundError: No event has this id
        """
        async with self._session_factory() as session:
            event = await self._repository_factory(session).get(event_id)
        if event is None:
            raise OutboxEventNotFoundError(event_id)
        return event

    async def get_dead_letter_events(
        self,
        limit: int = 100,
        offset: int = 0,
        tenant_id: str | None = None,
    ) -> list[OutboxEvent]:
        async with self._session_factory() as session:
            return await self._repository_factory(session).fetch_dead_letter(
                limit=limit, offset=offset, tenant_id=tenant_id
            )

    async def get_events_by_aggregate(
        self, aggregate_type: str, aggregate_id: str
    ) -> list[OutboxEvent]:
        async with self._session_factory() as session:
            return await self._repository_factory(session).fetch_by_aggregate(
                aggregate_type, aggregate_id
            )

    async def fetch_ready_events(self, limit: int) -> list[OutboxEvent]:
        """Read the oldest PENDING events."""
        async with self._session_factory() as session:
            return await self._repository_factory(session).fetch_ready(limit)

    async def fetch_retryable_events(self, limit: int) -> list[OutboxEvent]:
        """Read FAILED events that are due for another attempt."""
        now = self._clock()
        async with self._session_factory() as session:
            return await self._repository_factory(session).fetch_retryable(now, limit)

    async def _load(
        self, repo: IOutboxRepository, event_id: UUID, operation: str
    ) -> OutboxEvent | None:
        current = await repo.get(event_id)
        if current is None:
            self._probe.transition_rejected(event_id, operation, "not_found")
        return current

    def _version_matches(
        self, current: OutboxEvent, expected_version: int | None, operation: str
    ) -> bool:
        if expected_version is None or expected_version == current.version:
            return True
        self._probe.transition_rejected(current.id, operation, "version_conflict")
        return False
