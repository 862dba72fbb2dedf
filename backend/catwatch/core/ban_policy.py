"""Ban Policy Strategies — role protection applied to a discovered closure.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Exactly one strategy evaluates a given operation (never mixed)
    - STRICT: any discovered non-actor user with rank >= actor's rank blocks the
      whole operation
    - PERMISSIVE: only the seed target is checked (can_ban); the rest of the
      closure propagates unconditionally
    - An actor targeting themselves is blocked by both strategies
    - Return the list of blocking users; empty list means the operation may proceed

Design Decisions:
    - Strategy as a dict of plain functions keyed by BanPolicyMode: explicit,
      no class hierarchy, selectable from configuration
    - Actor skipped by id in the strict scan: the actor is never a blocker of their
      own action, but is still banned if the closure reaches them
"""

from typing import Callable, Iterable

from catwatch.core.domain_types import BanPolicyMode
from catwatch.core.identity_records import UserRecord
from catwatch.core.roles import can_ban, rank

PolicyCheck = Callable[[UserRecord, UserRecord, Iterable[UserRecord]], list[UserRecord]]


def strict_blocking_users(
    actor: UserRecord, target: UserRecord, discovered: Iterable[UserRecord],
) -> list[UserRecord]:
    """Every discovered user (other than the actor) at or above the actor's rank."""
    if target.id == actor.id:
        return [target]
    actor_rank = rank(actor.role)
    return [
        user for user in discovered
        if user.id != actor.id and rank(user.role) >= actor_rank
    ]


def permissive_blocking_users(
    actor: UserRecord, target: UserRecord, discovered: Iterable[UserRecord],
) -> list[UserRecord]:
    """Only the seed target is checked; the closure itself is never consulted."""
    if target.id == actor.id or not can_ban(actor.role, target.role):
        return [target]
    return []


POLICY_CHECKS: dict[BanPolicyMode, PolicyCheck] = {
    BanPolicyMode.STRICT: strict_blocking_users,
    BanPolicyMode.PERMISSIVE: permissive_blocking_users,
}


def find_blocking_users(
    mode: BanPolicyMode,
    actor: UserRecord,
    target: UserRecord,
    discovered: Iterable[UserRecord],
) -> list[UserRecord]:
    """Dispatch to the configured strategy."""
    return POLICY_CHECKS[BanPolicyMode(mode)](actor, target, discovered)
