"""Composition Root — builds and tears down every long-lived service.

Invariants:
    - Exactly one AppServices per application instance, owned by the FastAPI lifespan
    - No module-level singletons: routes reach services via request.app.state
    - shutdown() closes the cache client and disposes the engine

Design Decisions:
    - build() accepts pre-built db/cache so tests can inject SQLite and a
      client-less cache without patching modules
"""

import logging
from dataclasses import dataclass

from catwatch.config import Settings
from catwatch.core.identity_hashing import parse_hash_key
from catwatch.infrastructure.database import DatabaseSessionManager
from catwatch.infrastructure.identity_store import SqlIdentityStore
from catwatch.infrastructure.user_cache import UserViewCache
from catwatch.services.ban_propagation import BanPropagationService
from catwatch.services.identifier_tracking import IdentifierTrackingService
from catwatch.services.user_moderation import UserModerationService

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    db: DatabaseSessionManager
    store: SqlIdentityStore
    cache: UserViewCache
    propagation: BanPropagationService
    moderation: UserModerationService
    tracking: IdentifierTrackingService

    @classmethod
    def build(
        cls,
        settings: Settings,
        db: DatabaseSessionManager | None = None,
        cache: UserViewCache | None = None,
    ) -> "AppServices":
        if db is None:
            db = DatabaseSessionManager(
                settings.database_url,
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
            )
        if cache is None:
            cache = UserViewCache.from_url(
                settings.redis_url, settings.user_cache_ttl_seconds,
            )
        if not settings.ip_hash_key:
            logger.warning("IP_HASH_KEY not set; identifier recording is disabled")

        store = SqlIdentityStore(db)
        return cls(
            db=db,
            store=store,
            cache=cache,
            propagation=BanPropagationService(
                store,
                policy_mode=settings.ban_policy_mode,
                max_iterations=settings.closure_max_iterations,
            ),
            moderation=UserModerationService(store),
            tracking=IdentifierTrackingService(
                store, parse_hash_key(settings.ip_hash_key),
            ),
        )

    async def shutdown(self) -> None:
        await self.cache.close()
        await self.db.dispose()
