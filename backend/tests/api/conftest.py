"""API test fixtures — FastAPI app wired to SQLite and an in-memory cache.

Invariants:
    - app.state.services is built per test from the SQLite session manager
    - The lifespan does not run under ASGITransport, so services are injected here

Design Decisions:
    - Background tasks run before the httpx response returns (FastAPI behavior),
      so tests can assert cache invalidation right after a call
"""

import pytest
from httpx import ASGITransport, AsyncClient

from catwatch.composition import AppServices
from catwatch.config import Settings
from catwatch.infrastructure.user_cache import UserViewCache
from catwatch.main import app
from tests.infrastructure.fake_redis import FakeRedis

HASH_KEY_HEX = "00112233445566778899aabbccddeeff"


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        redis_url="",
        ip_hash_key=HASH_KEY_HEX,
    )


@pytest.fixture
async def services(settings, db, redis):
    return AppServices.build(settings, db=db, cache=UserViewCache(redis))


@pytest.fixture
async def client(services):
    app.state.services = services
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    del app.state.services
