"""Shared test fixtures."""

import os

# Settings are read at import time; JWT_SECRET has no default.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

from collections.abc import AsyncIterator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.arena_common.database import get_db_session  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in AsyncSession; tests program execute() per case."""
    return AsyncMock()


@pytest.fixture
async def client(db: AsyncMock) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints (no lifespan, mocked DB)."""
    app.dependency_overrides[get_db_session] = lambda: db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@asynccontextmanager
async def _no_lock(market_id: str) -> AsyncIterator[AsyncMock]:
    # lease whose renew() always succeeds
    yield AsyncMock()


@pytest.fixture
def no_lock():
    """Lock factory that always succeeds, for services under test."""
    return _no_lock
