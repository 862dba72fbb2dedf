"""User Moderation — tests for single-target ban, unban and role changes.

Tests cover:
    - ban touches only the named user, even when identifiers are shared
    - unban of a user who is not banned is rejected
    - role hierarchy gates ban and role updates; self-actions are rejected
    - missing actor/target raise ResourceNotFoundError
"""

import pytest

from catwatch.core.domain_types import UserRole
from catwatch.core.errors import (
    InvalidOperationError, PermissionDeniedError, ResourceNotFoundError,
)
from catwatch.services.user_moderation import UserModerationService
from tests.services.fake_identity_store import FIXED_NOW


@pytest.fixture
def service(store, clock):
    return UserModerationService(store, clock=clock)


# ─── ban / unban ─────────────────────────────────────────────────

async def test_ban_is_not_transitive(service, store, admin):
    store.add("A", "h1")
    store.add("B", "h1")

    user = await service.ban_user("A", "spam", "admin")

    assert user.is_banned
    assert user.ban_reason == "spam"
    assert user.banned_at == FIXED_NOW
    assert not store.users["B"].is_banned
    assert not user.banned_by_identifier


async def test_unban_restores_user(service, store, admin):
    store.add("A", "h1", is_banned=True, is_active=False, ban_reason="spam")

    user = await service.unban_user("A", "admin")

    assert not user.is_banned
    assert user.is_active
    assert user.ban_reason is None


async def test_unban_not_banned_user_is_invalid(service, store, admin):
    store.add("A", "h1")
    with pytest.raises(InvalidOperationError):
        await service.unban_user("A", "admin")
    assert store.mutation_calls == []


async def test_cannot_ban_equal_rank(service, store, admin):
    store.add("peer", role=UserRole.ADMIN)
    with pytest.raises(PermissionDeniedError) as exc_info:
        await service.ban_user("peer", "x", "admin")
    assert exc_info.value.http_status == 403
    assert store.mutation_calls == []


async def test_cannot_ban_self(service, admin):
    with pytest.raises(InvalidOperationError):
        await service.ban_user("admin", "x", "admin")


async def test_missing_target(service, admin):
    with pytest.raises(ResourceNotFoundError):
        await service.ban_user("ghost", "x", "admin")


async def test_missing_actor(service, store):
    store.add("A")
    with pytest.raises(ResourceNotFoundError):
        await service.ban_user("A", "x", "nobody")


# ─── role updates ────────────────────────────────────────────────

async def test_admin_promotes_user_to_moderator(service, store, admin):
    store.add("A")
    user = await service.update_role("A", UserRole.MODERATOR, "admin")
    assert user.role == UserRole.MODERATOR


async def test_cannot_grant_own_rank(service, store, admin):
    store.add("A")
    with pytest.raises(PermissionDeniedError):
        await service.update_role("A", UserRole.ADMIN, "admin")
    assert store.users["A"].role == UserRole.USER


async def test_cannot_demote_higher_rank(service, store, admin):
    store.add("root", role=UserRole.SUPERADMIN)
    with pytest.raises(PermissionDeniedError):
        await service.update_role("root", UserRole.USER, "admin")


async def test_cannot_change_own_role(service, admin):
    with pytest.raises(InvalidOperationError):
        await service.update_role("admin", UserRole.USER, "admin")


async def test_unchanged_role_is_invalid(service, store, admin):
    store.add("A", role=UserRole.MODERATOR)
    with pytest.raises(InvalidOperationError):
        await service.update_role("A", UserRole.MODERATOR, "admin")
    assert store.mutation_calls == []
