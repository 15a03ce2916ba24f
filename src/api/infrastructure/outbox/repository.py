"""Outbox repository implementation.

This module provides the SQLAlchemy implementation of the outbox repository.
It persists domain events to the outbox_events table and performs the
version-guarded updates that drive the event lifecycle.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.outbox.models import OutboxEventModel
from shared_kernel.outbox.value_objects import (
    TERMINAL_STATUSES,
    OutboxEvent,
    OutboxStatus,
)


class OutboxRepository:
    """SQLAlchemy implementation of the outbox repository.

    This repository shares the same database session as the calling service,
    ensuring that event appends happen within the same transaction as the
    business change. This is critical for the atomicity guarantee of the
    outbox pattern.

    The repository only calls session.add() and session.execute() - it never
    calls session.commit(). The calling service owns the transaction boundary.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a session.

        Args:
            session: The SQLAlchemy async session (shared with calling service)
        """
        self._session = session

    async def add(self, event: OutboxEvent) -> None:
        """Append an event to the outbox within the current transaction.

        Args:
            event: The event to stage; it is inserted on the next flush
        """
        self._session.add(OutboxEventModel.from_value_object(event))

    async def get(self, event_id: UUID) -> OutboxEvent | None:
        """Read a single event by id."""
        stmt = select(OutboxEventModel).where(OutboxEventModel.id == event_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_value_object() if model else None

    async def fetch_ready(self, limit: int) -> list[OutboxEvent]:
        """Fetch PENDING events ordered by creation time.

        Args:
            limit: Maximum number of events to fetch

        Returns:
            Oldest-first list of PENDING events
        """
        stmt = (
            select(OutboxEventModel)
            .where(OutboxEventModel.status == OutboxStatus.PENDING.value)
            .order_by(OutboxEventModel.created_at, OutboxEventModel.id)
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def fetch_retryable(self, now: datetime, limit: int) -> list[OutboxEvent]:
        """Fetch FAILED events whose next_retry_at is at or before now."""
        stmt = (
            select(OutboxEventModel)
            .where(OutboxEventModel.status == OutboxStatus.FAILED.value)
            .where(OutboxEventModel.next_retry_at <= now)
            .order_by(OutboxEventModel.next_retry_at, OutboxEventModel.created_at)
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def fetch_dead_letter(
        self,
        limit: int = 100,
        offset: int = 0,
        tenant_id: str | None = None,
    ) -> list[OutboxEvent]:
        """Fetch DEAD_LETTER events, most recently failed first."""
        stmt = select(OutboxEventModel).where(
            OutboxEventModel.status == OutboxStatus.DEAD_LETTER.value
        )
        if tenant_id is not None:
            stmt = stmt.where(OutboxEventModel.tenant_id == tenant_id)
        stmt = (
            stmt.order_by(OutboxEventModel.updated_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return await self._fetch(stmt)

    async def fetch_by_aggregate(
        self, aggregate_type: str, aggregate_id: str
    ) -> list[OutboxEvent]:
        """Fetch every event recorded for an aggregate, oldest first."""
        stmt = (
            select(OutboxEventModel)
            .where(OutboxEventModel.aggregate_type == aggregate_type)
            .where(OutboxEventModel.aggregate_id == aggregate_id)
            .order_by(OutboxEventModel.created_at)
        )
        return await self._fetch(stmt)

    async def compare_and_set(
        self,
        event_id: UUID,
        expected_version: int,
        allowed_statuses: Collection[OutboxStatus],
        values: Mapping[str, Any],
    ) -> bool:
        """Conditionally update a row and bump its version.

        The update is a single UPDATE ... WHERE id = :id AND version = :expected
        AND status IN (...), so concurrent writers that read the same version
        cannot both succeed.

        Args:
            event_id: Row to update
            expected_version: Version the caller last read
            allowed_statuses: Statuses the row must currently be in
            values: Attribute values to write

        Returns:
            True if exactly one row was updated
        """
        stmt = (
            update(OutboxEventModel)
            .where(OutboxEventModel.id == event_id)
            .where(OutboxEventModel.version == expected_version)
            .where(OutboxEventModel.status.in_([s.value for s in allowed_statuses]))
            .values(**_to_columns(values), version=OutboxEventModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def reset_stuck(self, cutoff: datetime, now: datetime) -> int:
        """Return abandoned PROCESSING events to PENDING.

        Args:
            cutoff: Claims with last_attempt_at before this are abandoned
            now: Timestamp written to updated_at

        Returns:
            Number of events reset
        """
        stmt = (
            update(OutboxEventModel)
            .where(OutboxEventModel.status == OutboxStatus.PROCESSING.value)
            .where(OutboxEventModel.last_attempt_at < cutoff)
            .values(
                status=OutboxStatus.PENDING.value,
                processing_instance_id=None,
                next_retry_at=None,
                updated_at=now,
                version=OutboxEventModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def delete_terminal_older_than(self, cutoff: datetime) -> int:
        """Delete COMPLETED/DEAD_LETTER events whose terminal time is before cutoff.

        The terminal time is processed_at, falling back to updated_at for rows
        that never recorded one.
        """
        terminal_at = func.coalesce(
            OutboxEventModel.processed_at, OutboxEventModel.updated_at
        )
        stmt = (
            delete(OutboxEventModel)
            .where(OutboxEventModel.status.in_([s.value for s in TERMINAL_STATUSES]))
            .where(terminal_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def count_by_status(
        self, tenant_id: str | None = None
    ) -> dict[OutboxStatus, int]:
        """Count events per status.

        Args:
            tenant_id: Restrict counts to one tenant when given

        Returns:
            Mapping of status to count; absent statuses are omitted
        """
        stmt = select(OutboxEventModel.status, func.count()).group_by(
            OutboxEventModel.status
        )
        if tenant_id is not None:
            stmt = stmt.where(OutboxEventModel.tenant_id == tenant_id)
        result = await self._session.execute(stmt)
        return {OutboxStatus(status): count for status, count in result.all()}

    async def _fetch(self, stmt) -> list[OutboxEvent]:
        result = await self._session.execute(stmt)
        return [model.to_value_object() for model in result.scalars().all()]


def _to_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    """Map value-object field names onto model attributes."""
    columns = dict(values)
    if "metadata" in columns:
        columns["event_metadata"] = columns.pop("metadata")
    status = columns.get("status")
    if isinstance(status, OutboxStatus):
        columns["status"] = status.value
    return columns
