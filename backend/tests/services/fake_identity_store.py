"""In-memory IdentityStore for service tests.

Records every lookup and mutation so tests can assert on exactly what the
services asked of the store. `fail_on` names methods that raise DatabaseError.
"""

from dataclasses import replace
from datetime import datetime, timezone

from catwatch.core.domain_types import Identifier, UserId, UserRole
from catwatch.core.errors import DatabaseError
from catwatch.core.identity_records import BannedIdentifierRecord, UserRecord

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

MUTATIONS = {
    "bulk_set_ban_state", "insert_banned_identifiers",
    "delete_banned_identifiers", "add_identifier", "set_role",
}


class InMemoryIdentityStore:

    def __init__(self, users: list[UserRecord] | None = None):
        self.users: dict[UserId, UserRecord] = {u.id: u for u in users or []}
        self.ledger: dict[Identifier, BannedIdentifierRecord] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.lookups: list[list[Identifier]] = []
        self.fail_on: set[str] = set()

    # ─── helpers ─────────────────────────────────────────────────

    def add(self, user_id: str, *identifiers: str, role: UserRole = UserRole.USER,
            **fields) -> UserRecord:
        user = UserRecord(
            id=UserId(user_id), username=user_id, role=role,
            identifiers=frozenset(Identifier(i) for i in identifiers), **fields,
        )
        self.users[user.id] = user
        return user

    def link(self, user_id: str, identifier: str) -> None:
        user = self.users[UserId(user_id)]
        self.users[user.id] = replace(
            user, identifiers=user.identifiers | {Identifier(identifier)},
        )

    @property
    def mutation_calls(self) -> list[tuple[str, tuple]]:
        return [c for c in self.calls if c[0] in MUTATIONS]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise DatabaseError("injected failure", name)

    # ─── IdentityStore ───────────────────────────────────────────

    async def find_users_by_identifiers(self, identifiers):
        wanted = set(identifiers)
        self.lookups.append(sorted(wanted))
        self._record("find_users_by_identifiers", sorted(wanted))
        return [u for u in self.users.values() if u.identifiers & wanted]

    async def find_user_by_id(self, user_id):
        self._record("find_user_by_id", user_id)
        return self.users.get(user_id)

    async def bulk_set_ban_state(
        self, user_ids, banned, reason=None, actor_id=None, timestamp=None,
    ):
        ids = list(user_ids)
        self._record("bulk_set_ban_state", ids, banned, reason, actor_id)
        now = timestamp or datetime.now(timezone.utc)
        count = 0
        for uid in ids:
            user = self.users.get(uid)
            if user is None:
                continue
            if banned:
                self.users[uid] = replace(
                    user, is_banned=True, is_active=False, ban_reason=reason,
                    banned_by=actor_id, banned_at=now, updated_at=now,
                )
            else:
                self.users[uid] = replace(
                    user, is_banned=False, is_active=True, ban_reason=None,
                    banned_by=None, banned_at=None, updated_at=now,
                )
            count += 1
        return count

    async def insert_banned_identifiers(self, records):
        rows = list(records)
        self._record("insert_banned_identifiers", rows)
        for row in rows:
            self.ledger[row.identifier] = row

    async def delete_banned_identifiers(self, identifiers):
        wanted = list(identifiers)
        self._record("delete_banned_identifiers", wanted)
        for identifier in wanted:
            self.ledger.pop(identifier, None)

    async def find_banned_identifier(self, identifier):
        self._record("find_banned_identifier", identifier)
        return self.ledger.get(identifier)

    async def add_identifier(self, user_id, identifier):
        self._record("add_identifier", user_id, identifier)
        user = self.users[user_id]
        if identifier in user.identifiers:
            return False
        self.users[user_id] = replace(
            user, identifiers=user.identifiers | {identifier},
        )
        return True

    async def set_role(self, user_id, role):
        self._record("set_role", user_id, role)
        self.users[user_id] = replace(self.users[user_id], role=UserRole(role))
