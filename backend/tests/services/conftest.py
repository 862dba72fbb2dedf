"""Service test fixtures — in-memory identity store and a fixed clock."""

import pytest

from catwatch.core.domain_types import UserRole
from tests.services.fake_identity_store import FIXED_NOW, InMemoryIdentityStore


@pytest.fixture
def store():
    return InMemoryIdentityStore()


@pytest.fixture
def admin(store):
    """Acting admin with no identifiers shared with anyone."""
    return store.add("admin", "h-admin", role=UserRole.ADMIN)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
