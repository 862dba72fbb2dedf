"""Infrastructure test fixtures — SQL store over the SQLite test database."""

import pytest

from catwatch.infrastructure.identity_store import SqlIdentityStore


@pytest.fixture
def sql_store(db):
    return SqlIdentityStore(db)
