"""SQL Identity Store — IdentityStore implementation over async SQLAlchemy.

Invariants:
    - Every method opens its own session and commits its own writes; there is no
      transaction spanning the user update and the ledger write
    - ORM rows are mapped to frozen core records before leaving this module
    - Failures surface as DatabaseError via DatabaseSessionManager
    - find_users_by_identifiers orders by (created_at, id) for deterministic walks

Design Decisions:
    - Ledger inserts are upserts via session.merge(): re-banning is idempotent
    - Unknown role strings in the DB degrade to UserRole.USER rather than crash
      a moderation walk
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import delete, select, update

from catwatch.core.domain_types import Identifier, UserId, UserRole
from catwatch.core.identity_records import BannedIdentifierRecord, UserRecord
from catwatch.infrastructure.database import DatabaseSessionManager
from catwatch.models.banned_identifier import BannedIdentifier
from catwatch.models.user import User
from catwatch.models.user_identifier import UserIdentifier

logger = logging.getLogger(__name__)


def _to_role(value: str) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        logger.warning(f"Unknown role '{value}' mapped to user")
        return UserRole.USER


def to_user_record(row: User) -> UserRecord:
    """Map an ORM User (with identifiers loaded) to a core UserRecord."""
    return UserRecord(
        id=UserId(row.id),
        username=row.username,
        role=_to_role(row.role),
        identifiers=frozenset(Identifier(i.identifier) for i in row.identifiers),
        is_banned=row.is_banned,
        ban_reason=row.ban_reason,
        banned_by=UserId(row.banned_by) if row.banned_by else None,
        banned_at=row.banned_at,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_seen_at=row.last_seen_at,
    )


def to_banned_record(row: BannedIdentifier) -> BannedIdentifierRecord:
    return BannedIdentifierRecord(
        identifier=Identifier(row.identifier),
        reason=row.reason,
        banned_by=UserId(row.banned_by),
        banned_at=row.banned_at,
    )


class SqlIdentityStore:
    """Users, identifier edges and the banned-identifier ledger in SQL."""

    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def find_users_by_identifiers(
        self, identifiers: Iterable[Identifier],
    ) -> list[UserRecord]:
        wanted = list(identifiers)
        if not wanted:
            return []
        carriers = select(UserIdentifier.user_id).where(
            UserIdentifier.identifier.in_(wanted),
        )
        async with self.db.session() as session:
            result = await session.execute(
                select(User)
                .where(User.id.in_(carriers))
                .order_by(User.created_at, User.id),
            )
            return [to_user_record(row) for row in result.scalars().all()]

    async def find_user_by_id(self, user_id: UserId) -> UserRecord | None:
        async with self.db.session() as session:
            result = await session.execute(
                select(User).where(User.id == user_id),
            )
            row = result.scalar_one_or_none()
            return to_user_record(row) if row else None

    async def bulk_set_ban_state(
        self,
        user_ids: Iterable[UserId],
        banned: bool,
        reason: str | None = None,
        actor_id: UserId | None = None,
        timestamp: datetime | None = None,
    ) -> int:
        ids = list(user_ids)
        if not ids:
            return 0
        now = timestamp or datetime.now(timezone.utc)
        if banned:
            values = {
                "is_banned": True, "is_active": False,
                "ban_reason": reason, "banned_by": actor_id,
                "banned_at": now, "updated_at": now,
            }
        else:
            values = {
                "is_banned": False, "is_active": True,
                "ban_reason": None, "banned_by": None,
                "banned_at": None, "updated_at": now,
            }
        async with self.db.session() as session:
            result = await session.execute(
                update(User)
                .where(User.id.in_(ids))
                .values(**values)
                .execution_options(synchronize_session=False),
            )
            await session.commit()
            return result.rowcount

    async def insert_banned_identifiers(
        self, records: Iterable[BannedIdentifierRecord],
    ) -> None:
        rows = list(records)
        if not rows:
            return
        now = datetime.now(timezone.utc)
        async with self.db.session() as session:
            for record in rows:
                await session.merge(BannedIdentifier(
                    identifier=record.identifier,
                    reason=record.reason,
                    banned_by=record.banned_by,
                    banned_at=record.banned_at,
                    updated_at=now,
                ))
            await session.commit()

    async def delete_banned_identifiers(
        self, identifiers: Iterable[Identifier],
    ) -> None:
        wanted = list(identifiers)
        if not wanted:
            return
        async with self.db.session() as session:
            await session.execute(
                delete(BannedIdentifier)
                .where(BannedIdentifier.identifier.in_(wanted)),
            )
            await session.commit()

    async def find_banned_identifier(
        self, identifier: Identifier,
    ) -> BannedIdentifierRecord | None:
        async with self.db.session() as session:
            row = await session.get(BannedIdentifier, identifier)
            return to_banned_record(row) if row else None

    async def add_identifier(
        self, user_id: UserId, identifier: Identifier,
    ) -> bool:
        now = datetime.now(timezone.utc)
        async with self.db.session() as session:
            existing = await session.get(UserIdentifier, (user_id, identifier))
            await session.execute(
                update(User).where(User.id == user_id).values(last_seen_at=now),
            )
            if existing is None:
                session.add(UserIdentifier(
                    user_id=user_id, identifier=identifier, first_seen_at=now,
                ))
            await session.commit()
            return existing is None

    async def set_role(self, user_id: UserId, role: UserRole) -> None:
        async with self.db.session() as session:
            await session.execute(
                update(User)
                .where(User.id == user_id)
                .values(role=UserRole(role).value, updated_at=datetime.now(timezone.utc)),
            )
            await session.commit()
