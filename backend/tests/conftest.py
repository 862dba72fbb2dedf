"""Root conftest — shared test configuration and the SQLite test database.

Invariants:
    - Every test that asks for test_engine gets a fresh in-memory SQLite database
    - No test reaches a real PostgreSQL or Redis

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for store and
      route tests (PostgreSQL-specific features not exercised here)
    - StaticPool: every session shares the single in-memory connection
"""

import os
from datetime import datetime, timedelta, timezone

# Ensure tests never reach a real database or cache
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("IP_HASH_KEY", "00112233445566778899aabbccddeeff")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from catwatch.db.base import Base  # noqa: E402
import catwatch.models  # noqa: E402,F401
from catwatch.infrastructure.database import DatabaseSessionManager  # noqa: E402
from catwatch.models.user import User  # noqa: E402
from catwatch.models.user_identifier import UserIdentifier  # noqa: E402

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def db(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
def seed_user(db):
    """Insert a user with identifiers; creation order follows call order."""
    counter = {"n": 0}

    async def _seed(user_id: str, *identifiers: str, role: str = "user", **fields):
        counter["n"] += 1
        async with db.session() as session:
            session.add(User(
                id=user_id, username=f"{user_id}-name", role=role,
                created_at=EPOCH + timedelta(minutes=counter["n"]), **fields,
            ))
            for identifier in identifiers:
                session.add(UserIdentifier(user_id=user_id, identifier=identifier))
            await session.commit()

    return _seed
