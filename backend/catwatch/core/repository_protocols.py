"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - IdentityStore methods raise DatabaseError (core/errors.py) on IO failure

Design Decisions:
    - Protocol over ABC: structural subtyping, the test fake needs no inheritance
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these records are never async themselves
"""

from datetime import datetime
from typing import Awaitable, Callable, Iterable, Protocol

from catwatch.core.domain_types import Identifier, UserId, UserRole
from catwatch.core.identity_records import BannedIdentifierRecord, UserRecord


class IdentityStore(Protocol):
    """Contract for user identity + ban ledger persistence — implemented by shell."""
    async def find_users_by_identifiers(
        self, identifiers: Iterable[Identifier],
    ) -> list[UserRecord]: ...
    async def find_user_by_id(self, user_id: UserId) -> UserRecord | None: ...
    async def bulk_set_ban_state(
        self,
        user_ids: Iterable[UserId],
        banned: bool,
        reason: str | None = None,
        actor_id: UserId | None = None,
        timestamp: datetime | None = None,
    ) -> int: ...
    async def insert_banned_identifiers(
        self, records: Iterable[BannedIdentifierRecord],
    ) -> None: ...
    async def delete_banned_identifiers(
        self, identifiers: Iterable[Identifier],
    ) -> None: ...
    async def find_banned_identifier(
        self, identifier: Identifier,
    ) -> BannedIdentifierRecord | None: ...
    async def add_identifier(
        self, user_id: UserId, identifier: Identifier,
    ) -> bool: ...
    async def set_role(self, user_id: UserId, role: UserRole) -> None: ...


class CacheInvalidator(Protocol):
    """Contract for dropping cached user views after a mutation."""
    async def invalidate_users(self, user_ids: Iterable[UserId]) -> None: ...


UserLoader = Callable[[UserId], Awaitable[UserRecord | None]]
