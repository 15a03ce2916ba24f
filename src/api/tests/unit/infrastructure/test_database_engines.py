"""Unit tests for database engine creation.

Tests the creation and configuration of async SQLAlchemy engines.
"""

import pytest
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import NullPool

from infrastructure.database.engines import (
    create_engine_for_url,
    create_engine_from_settings,
)
from infrastructure.settings import DatabaseSettings


@pytest.fixture
def mock_db_settings() -> DatabaseSettings:
    """Create mock database settings for testing."""
    return DatabaseSettings(
        host="localhost",
        port=5432,
        database="test_db",
        username="test_user",
        password=SecretStr("test_password"),
        pool_size=7,
    )


@pytest.mark.asyncio
async def test_engine_from_settings_uses_asyncpg(mock_db_settings):
    engine = create_engine_from_settings(mock_db_settings)
    try:
        assert isinstance(engine, AsyncEngine)
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "test_db"
        assert engine.pool.size() == 7
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_engine_from_settings_honours_url_override():
    settings = DatabaseSettings(url="sqlite+aiosqlite:///:memory:")
    engine = create_engine_from_settings(settings)
    try:
        assert engine.url.drivername == "sqlite+aiosqlite"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_sqlite_engine_is_not_pooled(tmp_path):
    """Each SQLite session opens its own connection."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
    try:
        assert isinstance(engine.pool, NullPool)
    finally:
        await engine.dispose()
