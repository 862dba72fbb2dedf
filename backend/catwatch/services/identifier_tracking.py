"""Identifier Tracking — attach hashed client addresses to users and query the ledger.

Invariants:
    - Only hashed identifiers reach the store
    - record_activity is idempotent per (user, identifier)
    - A banned identifier status lookup never mutates state
    - Without a hash key, nothing is recorded and every address reads as not banned
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from catwatch.core.domain_types import Identifier, UserId
from catwatch.core.errors import ResourceNotFoundError
from catwatch.core.identity_hashing import hash_identifier
from catwatch.core.repository_protocols import IdentityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentifierBanStatus:
    banned: bool
    reason: str | None = None
    banned_by: str | None = None
    banned_at: datetime | None = None


class IdentifierTrackingService:
    """Records which hashed network identifiers each user has been seen on."""

    def __init__(self, store: IdentityStore, hash_key: bytes):
        self.store = store
        self._hash_key = hash_key

    @property
    def enabled(self) -> bool:
        return bool(self._hash_key)

    def identify(self, raw_address: str) -> Identifier:
        return hash_identifier(raw_address, self._hash_key)

    async def record_activity(self, user_id: UserId, raw_address: str) -> bool:
        """Attach the hashed address to the user. True if it was new."""
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        if not self.enabled:
            return False
        added = await self.store.add_identifier(user.id, self.identify(raw_address))
        if added:
            logger.info(
                "New network identifier recorded",
                extra={"target_user_id": user.id},
            )
        return added

    async def check_banned(self, raw_address: str) -> IdentifierBanStatus:
        if not self.enabled:
            return IdentifierBanStatus(banned=False)
        record = await self.store.find_banned_identifier(self.identify(raw_address))
        if record is None:
            return IdentifierBanStatus(banned=False)

        # Prefer the banning user's name; fall back to their id
        banned_by = record.banned_by
        actor = await self.store.find_user_by_id(record.banned_by)
        if actor is not None and actor.username:
            banned_by = actor.username
        return IdentifierBanStatus(
            banned=True,
            reason=record.reason,
            banned_by=banned_by,
            banned_at=record.banned_at,
        )
