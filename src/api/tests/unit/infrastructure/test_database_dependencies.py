"""Unit tests for database dependency injection.

Tests the FastAPI dependency provider for request sessions against a
SQLite database configured through ``BIZOPS_DB_URL``.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from infrastructure.database.dependencies import (
    close_database_connections,
    get_write_engine,
    get_write_session,
)
from infrastructure.database.tenant_session import TenantScopedSession
from infrastructure.settings import get_database_settings


@pytest_asyncio.fixture(autouse=True)
async def sqlite_url(tmp_path, monkeypatch):
    """Point the process-wide engine at a throwaway SQLite file."""
    monkeypatch.setenv("BIZOPS_DB_URL", f"sqlite+aiosqlite:///{tmp_path / 'deps.db'}")
    get_database_settings.cache_clear()
    yield
    await close_database_connections()
    get_database_settings.cache_clear()


@pytest.mark.asyncio
async def test_get_write_engine():
    """Test that get_write_engine returns an AsyncEngine."""
    engine = get_write_engine()

    assert isinstance(engine, AsyncEngine)
    assert engine.url.drivername == "sqlite+aiosqlite"


@pytest.mark.asyncio
async def test_engine_is_a_singleton():
    """Test that the engine is cached and reused."""
    assert get_write_engine() is get_write_engine()


@pytest.mark.asyncio
async def test_get_write_session():
    """Sessions are bound to the write engine and carry the tenant events."""
    write_engine = get_write_engine()

    async for session in get_write_session():
        assert isinstance(session, AsyncSession)
        assert isinstance(session.sync_session, TenantScopedSession)
        assert session.bind.sync_engine is write_engine.sync_engine


@pytest.mark.asyncio
async def test_sessions_start_unbound():
    async for session in get_write_session():
        assert "tenant_id" not in session.info


@pytest.mark.asyncio
async def test_close_database_connections():
    """After closing, the next call builds a new engine."""
    write_engine = get_write_engine()

    await close_database_connections()

    assert get_write_engine() is not write_engine
