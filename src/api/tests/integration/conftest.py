"""Integration test fixtures for database tests.

These fixtures run against a throwaway SQLite database (aiosqlite) created
in the test's temporary directory, with the schema built from the models.
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import infrastructure.outbox.models  # noqa: F401
import notifications.infrastructure.models  # noqa: F401
from infrastructure.database.engines import create_engine_for_url
from infrastructure.database.models import Base
from infrastructure.outbox.service import OutboxEventService
from shared_kernel.outbox.backoff import BackoffPolicy


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


class FrozenClock:
    """Controllable UTC clock for the outbox service."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 8, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine with every table created."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'outbox.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def backoff() -> BackoffPolicy:
    """One minute, then five, then twenty-five."""
    return BackoffPolicy(
        base_delay=timedelta(minutes=1),
        multiplier=5,
        max_delay=timedelta(hours=1),
    )


@pytest.fixture
def outbox_service(session_factory, clock, backoff) -> OutboxEventService:
    return OutboxEventService(
        session_factory,
        backoff=backoff,
        default_max_retries=3,
        clock=clock,
    )
