"""User Moderation — single-target ban, unban and role changes.

Invariants:
    - Non-transitive: only the named user is touched, identifiers are ignored
    - can_ban(actor, target) gates ban/unban; can_manage gates role changes on
      both the target's current role and the requested role
    - Actors cannot ban, unban or re-role themselves
    - Raises CatwatchError subclasses; the API error handler renders them

Design Decisions:
    - Raise instead of returning results: these are plain request/response
      actions with no partial outcomes, unlike BanPropagationService
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from catwatch.core.domain_types import UserId, UserRole
from catwatch.core.errors import (
    InvalidOperationError, PermissionDeniedError, ResourceNotFoundError,
)
from catwatch.core.identity_records import UserRecord
from catwatch.core.repository_protocols import IdentityStore
from catwatch.core.roles import can_ban, can_manage

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModerationService:
    """Direct moderation actions against one user."""

    def __init__(
        self, store: IdentityStore, clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self._clock = clock

    async def ban_user(
        self, target_user_id: UserId, reason: str, actor_id: UserId,
    ) -> UserRecord:
        target, actor = await self._load(target_user_id, actor_id)
        self._check_can_ban(actor, target, "ban")
        await self.store.bulk_set_ban_state(
            [target.id], True, reason, actor.id, self._clock(),
        )
        logger.info(
            f"User {target.display_name} banned",
            extra={"actor_id": actor.id, "target_user_id": target.id},
        )
        return await self._reload(target.id)

    async def unban_user(
        self, target_user_id: UserId, actor_id: UserId,
    ) -> UserRecord:
        target, actor = await self._load(target_user_id, actor_id)
        self._check_can_ban(actor, target, "unban")
        if not target.is_banned:
            raise InvalidOperationError(f"User {target.display_name} is not banned")
        await self.store.bulk_set_ban_state(
            [target.id], False, timestamp=self._clock(),
        )
        logger.info(
            f"User {target.display_name} unbanned",
            extra={"actor_id": actor.id, "target_user_id": target.id},
        )
        return await self._reload(target.id)

    async def update_role(
        self, target_user_id: UserId, new_role: UserRole, actor_id: UserId,
    ) -> UserRecord:
        target, actor = await self._load(target_user_id, actor_id)
        if target.id == actor.id:
            raise InvalidOperationError("Cannot update your own role")
        if not can_manage(actor.role, new_role):
            raise PermissionDeniedError(
                f"You cannot manage users with role: {UserRole(new_role).value}",
            )
        if not can_manage(actor.role, target.role):
            raise PermissionDeniedError(
                f"You cannot manage users with role: {target.role.value}",
            )
        if target.role == new_role:
            raise InvalidOperationError(
                f"User is already {target.role.value}",
            )
        await self.store.set_role(target.id, UserRole(new_role))
        logger.info(
            f"Role of {target.display_name} changed "
            f"{target.role.value} -> {UserRole(new_role).value}",
            extra={"actor_id": actor.id, "target_user_id": target.id},
        )
        return await self._reload(target.id)

    async def _load(
        self, target_user_id: UserId, actor_id: UserId,
    ) -> tuple[UserRecord, UserRecord]:
        actor = await self.store.find_user_by_id(actor_id)
        if actor is None:
            raise ResourceNotFoundError("Actor", actor_id)
        target = await self.store.find_user_by_id(target_user_id)
        if target is None:
            raise ResourceNotFoundError("User", target_user_id)
        return target, actor

    async def _reload(self, user_id: UserId) -> UserRecord:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    @staticmethod
    def _check_can_ban(actor: UserRecord, target: UserRecord, verb: str) -> None:
        if target.id == actor.id:
            raise InvalidOperationError(f"Cannot {verb} yourself")
        if not can_ban(actor.role, target.role):
            raise PermissionDeniedError(
                f"You cannot {verb} users with role: {target.role.value}",
            )
