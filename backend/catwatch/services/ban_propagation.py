"""Ban Propagation — ban or unban every account linked to a target by shared identifiers.

Invariants:
    - Public methods never raise CatwatchError: every failure becomes a PropagationResult
    - NOT_FOUND, NO_IDENTIFIERS, POLICY_BLOCKED and STORE_UNAVAILABLE during the
      read phase leave the store untouched
    - Exactly one policy strategy (self.policy_mode) evaluates an operation
    - Every discovered user is marked banned, the actor included when reached;
      users already banned for another reason keep that ban untouched
    - Ban writes users first, then the ledger; a ledger failure after the user
      write returns PARTIAL_FAILURE (no rollback)
    - ban/unban calls on one service instance run one at a time (self._lock)

Design Decisions:
    - Single asyncio.Lock for the subsystem over per-identifier locks: the closure is
      unknown until computed, so a per-identifier lock set could not be acquired
      up front without a second walk
    - Unban recomputes the closure from current state rather than replaying the ban,
      walking only users whose ban reason carries IDENTIFIER_BAN_PREFIX; the unban
      set may legitimately differ from the original ban set
    - Ledger rows store the operator's reason without the prefix; user rows carry
      the prefixed reason so unban can find them
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from catwatch.core.ban_policy import find_blocking_users
from catwatch.core.domain_types import (
    IDENTIFIER_BAN_PREFIX, MAX_ITERATIONS, BanPolicyMode, PropagationStatus, UserId,
)
from catwatch.core.errors import (
    CatwatchError, DatabaseError, ErrorContext, NoIdentifiersError,
    PartialFailureError, PolicyBlockedError, ResourceNotFoundError,
)
from catwatch.core.identity_records import (
    BannedIdentifierRecord, ClosureResult, PropagationResult, UserRecord,
)
from catwatch.core.repository_protocols import IdentityStore
from catwatch.services.graph_closure import GraphClosureEngine

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BanPropagationService:
    """Orchestrates closure -> role policy -> bulk mutation for identifier bans."""

    def __init__(
        self,
        store: IdentityStore,
        policy_mode: BanPolicyMode = BanPolicyMode.STRICT,
        max_iterations: int = MAX_ITERATIONS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.policy_mode = BanPolicyMode(policy_mode)
        self.engine = GraphClosureEngine(store, max_iterations)
        self._clock = clock
        self._lock = asyncio.Lock()

    # ─── Public API ──────────────────────────────────────────────

    async def ban_by_identifier(
        self, target_user_id: UserId, reason: str, actor_id: UserId,
    ) -> PropagationResult:
        """Ban the target and every account linked to it through shared identifiers."""
        context = ErrorContext(
            actor_id=actor_id, target_user_id=target_user_id,
            operation="ban_by_identifier",
        )
        async with self._lock:
            try:
                return await self._ban(target_user_id, reason, actor_id)
            except CatwatchError as exc:
                exc.context = context
                return self._failure(exc)

    async def unban_by_identifier(
        self, target_user_id: UserId, actor_id: UserId,
    ) -> PropagationResult:
        """Lift identifier-propagated bans across the target's current closure."""
        context = ErrorContext(
            actor_id=actor_id, target_user_id=target_user_id,
            operation="unban_by_identifier",
        )
        async with self._lock:
            try:
                return await self._unban(target_user_id, actor_id)
            except CatwatchError as exc:
                exc.context = context
                return self._failure(exc)

    # ─── Flows ───────────────────────────────────────────────────

    async def _ban(
        self, target_user_id: UserId, reason: str, actor_id: UserId,
    ) -> PropagationResult:
        target, actor = await self._load_participants(target_user_id, actor_id)
        closure = await self.engine.compute_closure([target.id], target.identifiers)
        self._enforce_policy(actor, target, self._discovered(closure, target))

        user_ids = sorted(closure.user_ids)
        identifiers = sorted(closure.identifiers)
        now = self._clock()

        await self.store.bulk_set_ban_state(
            self._bannable(closure), True,
            f"{IDENTIFIER_BAN_PREFIX}{reason}", actor.id, now,
        )
        records = [
            BannedIdentifierRecord(
                identifier=identifier, reason=reason, banned_by=actor.id, banned_at=now,
            )
            for identifier in identifiers
        ]
        try:
            await self.store.insert_banned_identifiers(records)
        except DatabaseError as exc:
            return self._partial_failure(
                f"Banned {len(user_ids)} users but failed to record "
                f"{len(identifiers)} banned identifiers",
                exc, user_ids, identifiers, closure,
            )

        logger.info(
            f"Identifier ban applied to {len(user_ids)} users",
            extra={
                "actor_id": actor.id, "target_user_id": target.id,
                "iterations": closure.iterations, "affected_users": len(user_ids),
            },
        )
        return self._success(
            f"Successfully banned {len(user_ids)} users "
            f"from {len(identifiers)} identifiers",
            user_ids, identifiers, closure,
        )

    async def _unban(
        self, target_user_id: UserId, actor_id: UserId,
    ) -> PropagationResult:
        target, actor = await self._load_participants(target_user_id, actor_id)
        closure = await self.engine.compute_closure(
            [target.id], target.identifiers,
            include=lambda user: user.id == target.id or user.banned_by_identifier,
        )
        releasable = [u for u in closure.users if u.banned_by_identifier]
        self._enforce_policy(actor, target, releasable)

        user_ids = sorted(u.id for u in releasable)
        identifiers = sorted(closure.identifiers)

        await self.store.bulk_set_ban_state(
            user_ids, False, timestamp=self._clock(),
        )
        try:
            await self.store.delete_banned_identifiers(identifiers)
        except DatabaseError as exc:
            return self._partial_failure(
                f"Unbanned {len(user_ids)} users but failed to clear "
                f"{len(identifiers)} banned identifiers",
                exc, user_ids, identifiers, closure,
            )

        logger.info(
            f"Identifier unban applied to {len(user_ids)} users",
            extra={
                "actor_id": actor.id, "target_user_id": target.id,
                "iterations": closure.iterations, "affected_users": len(user_ids),
            },
        )
        return self._success(
            f"Successfully unbanned {len(user_ids)} users "
            f"from {len(identifiers)} identifiers",
            user_ids, identifiers, closure,
        )

    # ─── Helpers ─────────────────────────────────────────────────

    async def _load_participants(
        self, target_user_id: UserId, actor_id: UserId,
    ) -> tuple[UserRecord, UserRecord]:
        target = await self.store.find_user_by_id(target_user_id)
        if target is None:
            raise ResourceNotFoundError("User", target_user_id)
        actor = await self.store.find_user_by_id(actor_id)
        if actor is None:
            raise ResourceNotFoundError("Actor", actor_id)
        if not target.identifiers:
            raise NoIdentifiersError(target.id)
        return target, actor

    @staticmethod
    def _bannable(closure: ClosureResult) -> list[UserId]:
        """Closure users whose row the ban may write: unbanned or identifier-banned."""
        return sorted(
            u.id for u in closure.users
            if not u.is_banned or u.banned_by_identifier
        )

    @staticmethod
    def _discovered(closure: ClosureResult, target: UserRecord) -> list[UserRecord]:
        users = list(closure.users)
        if target.id not in {u.id for u in users}:
            users.append(target)
        return users

    def _enforce_policy(
        self, actor: UserRecord, target: UserRecord, discovered: list[UserRecord],
    ) -> None:
        blocking = find_blocking_users(self.policy_mode, actor, target, discovered)
        if blocking:
            raise PolicyBlockedError(blocking, self.policy_mode.value)

    @staticmethod
    def _success(
        message: str,
        user_ids: list[UserId],
        identifiers: list,
        closure: ClosureResult,
    ) -> PropagationResult:
        status = (
            PropagationStatus.SAFETY_LIMIT_REACHED if closure.capped
            else PropagationStatus.OK
        )
        if closure.capped:
            message += (
                f" (safety limit of {closure.iterations} iterations reached; "
                "result is partial, re-run to continue)"
            )
        return PropagationResult(
            status=status, message=message,
            user_ids=user_ids, identifiers=identifiers,
            iterations=closure.iterations, capped=closure.capped,
        )

    @staticmethod
    def _partial_failure(
        message: str,
        exc: DatabaseError,
        user_ids: list[UserId],
        identifiers: list,
        closure: ClosureResult,
    ) -> PropagationResult:
        error = PartialFailureError(
            f"{message}; re-query current state before retrying",
        )
        logger.error(
            f"{message}: {exc.message}",
            extra={"error_code": error.code, "affected_users": len(user_ids)},
        )
        return PropagationResult(
            status=error.status,
            message=error.message,
            user_ids=user_ids, identifiers=identifiers,
            iterations=closure.iterations, capped=closure.capped,
            http_status=error.http_status,
        )

    @staticmethod
    def _failure(exc: CatwatchError) -> PropagationResult:
        extra = {
            "error_code": exc.code,
            "actor_id": exc.context.actor_id,
            "target_user_id": exc.context.target_user_id,
            "operation": exc.context.operation,
        }
        operation = exc.context.operation or "identifier operation"
        if isinstance(exc, DatabaseError):
            logger.error(f"{operation} aborted: {exc.message}", extra=extra)
        else:
            logger.info(f"{operation} rejected: {exc.message}", extra=extra)
        return PropagationResult(
            status=exc.status,
            message=exc.message,
            blocking_users=list(getattr(exc, "blocking_users", [])),
            http_status=exc.http_status,
        )
