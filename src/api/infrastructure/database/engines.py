"""Database engine creation for async SQLAlchemy.

This module provides the factory for the application's async engine. PostgreSQL
deployments use asyncpg; SQLite URLs (aiosqlite) are accepted for local runs
and tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings

__all__ = [
    "create_engine_from_settings",
    "create_engine_for_url",
]


def create_engine_from_settings(settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        settings: Database connection settings

    Returns:
        Configured async engine
    """
    return create_engine_for_url(settings.async_url, pool_size=settings.pool_size)


def create_engine_for_url(url: str, pool_size: int = 10) -> AsyncEngine:
    """Create an async engine for an explicit URL.

    SQLite connections are not pooled; every session opens its own
    connection so concurrent sessions see each other's commits.

    Args:
        url: SQLAlchemy async URL
        pool_size: Pool size for server databases

    Returns:
        Configured async engine
    """
    if make_url(url).get_backend_name() == "sqlite":
        return create_async_engine(url, poolclass=NullPool, echo=False)

    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=0,  # No overflow - strict pool limit
        pool_pre_ping=True,  # Verify connections before using
        echo=False,
    )
