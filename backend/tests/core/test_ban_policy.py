"""Ban Policy — tests for strict and permissive role-protection strategies.

Tests cover:
    - strict blocks on any discovered user at or above the actor's rank
    - strict ignores the actor as a blocker even when the actor is in the closure
    - both strategies block an actor targeting themselves
    - permissive ignores the closure and checks only the seed target
    - dispatch by BanPolicyMode (enum or raw string)
"""

from catwatch.core.ban_policy import (
    find_blocking_users, permissive_blocking_users, strict_blocking_users,
)
from catwatch.core.domain_types import BanPolicyMode, UserId, UserRole
from catwatch.core.identity_records import UserRecord


def _user(uid: str, role: UserRole = UserRole.USER) -> UserRecord:
    return UserRecord(id=UserId(uid), username=uid, role=role)


# ─── strict ──────────────────────────────────────────────────────

def test_strict_allows_when_all_discovered_rank_below_actor():
    actor = _user("a", UserRole.ADMIN)
    target = _user("t")
    discovered = [target, _user("b", UserRole.MODERATOR)]
    assert strict_blocking_users(actor, target, discovered) == []


def test_strict_blocks_on_equal_rank():
    actor = _user("a", UserRole.MODERATOR)
    target = _user("t")
    peer = _user("p", UserRole.MODERATOR)
    assert strict_blocking_users(actor, target, [target, peer]) == [peer]


def test_strict_blocks_on_higher_rank_target():
    actor = _user("a", UserRole.ADMIN)
    target = _user("t", UserRole.SUPERADMIN)
    assert strict_blocking_users(actor, target, [target]) == [target]


def test_strict_skips_actor_in_closure():
    actor = _user("a", UserRole.MODERATOR)
    target = _user("t")
    assert strict_blocking_users(actor, target, [target, actor]) == []


def test_strict_blocks_self_target():
    actor = _user("a", UserRole.SUPERADMIN)
    assert strict_blocking_users(actor, actor, [actor]) == [actor]


def test_strict_superadmin_blocked_by_other_superadmin():
    actor = _user("a", UserRole.SUPERADMIN)
    target = _user("t")
    other = _user("s2", UserRole.SUPERADMIN)
    assert strict_blocking_users(actor, target, [target, other]) == [other]


# ─── permissive ──────────────────────────────────────────────────

def test_permissive_ignores_protected_users_in_closure():
    actor = _user("a", UserRole.MODERATOR)
    target = _user("t")
    discovered = [target, _user("boss", UserRole.SUPERADMIN)]
    assert permissive_blocking_users(actor, target, discovered) == []


def test_permissive_still_checks_seed_target():
    actor = _user("a", UserRole.MODERATOR)
    target = _user("t", UserRole.ADMIN)
    assert permissive_blocking_users(actor, target, [target]) == [target]


def test_permissive_blocks_self_target_even_with_linked_superadmin():
    actor = _user("u")
    root = _user("root", UserRole.SUPERADMIN)
    assert permissive_blocking_users(actor, actor, [actor, root]) == [actor]


# ─── dispatch ────────────────────────────────────────────────────

def test_dispatch_selects_strategy():
    actor = _user("a", UserRole.ADMIN)
    target = _user("t")
    boss = _user("boss", UserRole.SUPERADMIN)
    assert find_blocking_users(BanPolicyMode.STRICT, actor, target, [target, boss]) == [boss]
    assert find_blocking_users("permissive", actor, target, [target, boss]) == []
