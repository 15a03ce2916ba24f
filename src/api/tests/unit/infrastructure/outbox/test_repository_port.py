"""Unit tests for the outbox repository port and its use by the service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from infrastructure.outbox.repository import OutboxRepository
from infrastructure.outbox.service import OutboxEventService
from shared_kernel.outbox.ports import IOutboxRepository
from shared_kernel.outbox.value_objects import OutboxStatus


def _session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


class TestOutboxRepositoryPort:
    """Tests for IOutboxRepository conformance."""

    def test_sqlalchemy_repository_implements_port(self):
        assert isinstance(OutboxRepository(MagicMock()), IOutboxRepository)

    @pytest.mark.asyncio
    async def test_service_reads_through_repository_factory(self):
        session = MagicMock()
        repository = MagicMock()
        repository.count_by_status = AsyncMock(
            return_value={OutboxStatus.PENDING: 2, OutboxStatus.DEAD_LETTER: 1}
        )
        built_for = []

        def factory(bound_session):
            built_for.append(bound_session)
            return repository

        service = OutboxEventService(
            session_factory=_session_factory(session),
            probe=MagicMock(),
            repository_factory=factory,
        )

        stats = await service.get_statistics(tenant_id="tenant-1")

        assert built_for == [session]
        repository.count_by_status.assert_awaited_once_with("tenant-1")
        assert stats.pending == 2
        assert stats.dead_letter == 1
