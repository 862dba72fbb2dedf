"""Identifier Tracking — tests for activity recording and ledger checks.

Tests cover:
    - recorded identifiers are hashed, never raw addresses
    - recording the same address twice reports it as not new
    - check_banned resolves the banning user's name
    - an unset hash key disables recording and checks
"""

import pytest

from catwatch.core.errors import ResourceNotFoundError
from catwatch.core.identity_hashing import hash_identifier
from catwatch.core.identity_records import BannedIdentifierRecord
from catwatch.services.identifier_tracking import IdentifierTrackingService
from tests.services.fake_identity_store import FIXED_NOW

KEY = bytes.fromhex("00112233445566778899aabbccddeeff")


@pytest.fixture
def tracking(store):
    return IdentifierTrackingService(store, KEY)


async def test_record_activity_stores_hash(tracking, store):
    store.add("A")

    added = await tracking.record_activity("A", "203.0.113.7")

    assert added is True
    assert store.users["A"].identifiers == {hash_identifier("203.0.113.7", KEY)}
    assert "203.0.113.7" not in store.users["A"].identifiers


async def test_record_activity_is_idempotent(tracking, store):
    store.add("A")
    await tracking.record_activity("A", "203.0.113.7")
    again = await tracking.record_activity("A", " 203.0.113.7 ")
    assert again is False
    assert len(store.users["A"].identifiers) == 1


async def test_record_activity_unknown_user(tracking):
    with pytest.raises(ResourceNotFoundError):
        await tracking.record_activity("ghost", "203.0.113.7")


async def test_check_banned_clean_address(tracking):
    status = await tracking.check_banned("198.51.100.1")
    assert status.banned is False
    assert status.reason is None


async def test_check_banned_resolves_banning_username(tracking, store, admin):
    identifier = tracking.identify("198.51.100.1")
    store.ledger[identifier] = BannedIdentifierRecord(
        identifier=identifier, reason="ring", banned_by="admin", banned_at=FIXED_NOW,
    )

    status = await tracking.check_banned("198.51.100.1")

    assert status.banned is True
    assert status.reason == "ring"
    assert status.banned_by == "admin"
    assert status.banned_at == FIXED_NOW


async def test_check_banned_falls_back_to_actor_id(tracking, store):
    identifier = tracking.identify("198.51.100.1")
    store.ledger[identifier] = BannedIdentifierRecord(
        identifier=identifier, reason="ring", banned_by="gone", banned_at=FIXED_NOW,
    )
    status = await tracking.check_banned("198.51.100.1")
    assert status.banned_by == "gone"


async def test_missing_key_disables_tracking(store):
    store.add("A")
    tracking = IdentifierTrackingService(store, b"")

    assert tracking.enabled is False
    assert await tracking.record_activity("A", "203.0.113.7") is False
    assert (await tracking.check_banned("203.0.113.7")).banned is False
    assert store.mutation_calls == []
