"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.hd_common.database import get_db_session
from src.main import app


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Redis stand-in for the rate limiter: every request is the first in its window."""
    redis = AsyncMock()
    redis.incr.return_value = 1
    monkeypatch.setattr("src.hd_common.redis_client._redis_pool", redis)
    return redis


@pytest.fixture
async def client(fake_redis: AsyncMock) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints without PostgreSQL."""

    async def _session():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
