"""Identity Records — typed domain records crossing the IdentityStore boundary.

Invariants:
    - Records are frozen: the store returns snapshots, services never mutate them
    - UserRecord.identifiers holds hashed identifiers only
    - ClosureResult is ephemeral: built and consumed inside one propagation operation
    - PropagationResult.success is True only for OK and SAFETY_LIMIT_REACHED

Design Decisions:
    - Dataclasses over ORM objects: core/ and services/ never see SQLAlchemy rows;
      infrastructure/identity_store.py owns the mapping
    - frozenset for identifier sets: hashable, order-free, safe to share
"""

from dataclasses import dataclass, field
from datetime import datetime

from catwatch.core.domain_types import (
    IDENTIFIER_BAN_PREFIX, Identifier, PropagationStatus, UserId, UserRole,
)


@dataclass(frozen=True)
class UserRecord:
    """Snapshot of a user as seen by moderation logic."""
    id: UserId
    role: UserRole = UserRole.USER
    username: str | None = None
    identifiers: frozenset[Identifier] = frozenset()
    is_banned: bool = False
    ban_reason: str | None = None
    banned_by: UserId | None = None
    banned_at: datetime | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_seen_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.username or self.id

    @property
    def banned_by_identifier(self) -> bool:
        """True when the current ban came from identifier propagation."""
        return bool(
            self.is_banned and self.ban_reason
            and self.ban_reason.lower().startswith(IDENTIFIER_BAN_PREFIX.lower())
        )

    def to_public(self) -> dict:
        """Public view — identifier hashes are never exposed."""
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "is_banned": self.is_banned,
            "ban_reason": self.ban_reason,
            "banned_by": self.banned_by,
            "banned_at": self.banned_at.isoformat() if self.banned_at else None,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class BannedIdentifierRecord:
    """One row of the banned-identifier ledger."""
    identifier: Identifier
    reason: str
    banned_by: UserId
    banned_at: datetime


@dataclass(frozen=True)
class ClosureResult:
    """Users and identifiers reached from a seed, plus how the walk stopped."""
    user_ids: frozenset[UserId]
    identifiers: frozenset[Identifier]
    iterations: int
    capped: bool
    users: tuple[UserRecord, ...] = ()


@dataclass
class PropagationResult:
    """Structured outcome of a ban/unban propagation — never an exception."""
    status: PropagationStatus
    message: str
    user_ids: list[UserId] = field(default_factory=list)
    identifiers: list[Identifier] = field(default_factory=list)
    iterations: int = 0
    capped: bool = False
    blocking_users: list[UserRecord] = field(default_factory=list)
    http_status: int = 200

    @property
    def success(self) -> bool:
        return self.status in (
            PropagationStatus.OK, PropagationStatus.SAFETY_LIMIT_REACHED,
        )

    @property
    def mutated(self) -> bool:
        """Whether callers must assume store state changed."""
        return self.success or self.status == PropagationStatus.PARTIAL_FAILURE
