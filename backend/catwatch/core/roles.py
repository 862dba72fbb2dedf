"""Role Hierarchy — total order over roles and the manage/ban predicates.

Invariants:
    - rank: user 0 < moderator 1 < admin 2 < superadmin 3
    - can_manage(actor, target) iff rank(actor) > rank(target), except that
      superadmins never manage other superadmins
    - can_ban is the same rule as can_manage (ban is a management action)
    - All functions are PURE: no IO, no async, no side effects
"""

from catwatch.core.domain_types import UserRole

ROLE_RANK: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.MODERATOR: 1,
    UserRole.ADMIN: 2,
    UserRole.SUPERADMIN: 3,
}


def rank(role: UserRole | str) -> int:
    """Numeric rank of a role. Raises ValueError for unknown role names."""
    return ROLE_RANK[UserRole(role)]


def has_role_permission(role: UserRole | str, required: UserRole | str) -> bool:
    """Role meets or exceeds the required role."""
    return rank(role) >= rank(required)


def can_manage(actor_role: UserRole | str, target_role: UserRole | str) -> bool:
    """Whether actor may change the role or status of a target with target_role."""
    return rank(actor_role) > rank(target_role)


def can_ban(actor_role: UserRole | str, target_role: UserRole | str) -> bool:
    return can_manage(actor_role, target_role)

