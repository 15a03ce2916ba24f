"""Database dependency injection for FastAPI.

Provides the application's async session factory with lazily created,
module-level engine state and a shutdown hook.
"""

from __future__ import annotations

import threading
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_engine_from_settings
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

_probe = DefaultConnectionProbe()

# Module-level engine and sessionmaker (created on first use)
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_engine() -> AsyncEngine:
    """Get the database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.
    Also creates and caches the sessionmaker for efficient session creation.

    Returns:
        Configured async engine
    """
    global _engine, _sessionmaker
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                settings = get_database_settings()
                _engine = create_engine_from_settings(settings)
                _sessionmaker = async_sessionmaker(
                    _engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(settings.connection_string)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory, creating the engine if needed."""
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def get_write_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session for mutations (FastAPI dependency).

    The session is configured to NOT auto-commit. Callers must explicitly
    manage transactions using `async with session.begin()`.

    Usage:
        @router.post("/orders")
        async def place_order(
            session: AsyncSession = Depends(get_write_session),
            outbox: OutboxEventService = Depends(get_outbox_event_service),
        ):
            async with session.begin():
                session.add(order)
                await outbox.create_event(session, tenant_id=..., ...)
                # order and event commit together at the end of the block

    Yields:
        AsyncSession for database operations
    """
    async with get_session_factory()() as session:
        yield session


async def close_database_connections() -> None:
    """Dispose the engine.

    Should be called on application shutdown to properly cleanup connections.
    Also resets the sessionmaker to allow reinitialization.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _probe.pool_closed()
        _engine = None
        _sessionmaker = None
