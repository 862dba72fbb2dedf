"""User View Cache — read-through Redis cache of public user views, plus invalidation.

Invariants:
    - Cached values are UserRecord.to_public() dicts (no identifier hashes)
    - Keys derive from key_fn(user_id); invalidation uses the same function
    - Cache failures degrade to a direct load; they never fail a request
    - With no client configured the cache is a pass-through

Design Decisions:
    - Composition over subclassing the store: wraps any async loader, so the
      same cache fronts the SQL store, a fake, or anything else
    - redis.asyncio client injected: tests pass an in-memory stand-in object
"""

import json
import logging
from typing import Any, Callable, Iterable

from redis import RedisError
from redis.asyncio import Redis

from catwatch.core.domain_types import UserId
from catwatch.core.repository_protocols import UserLoader

logger = logging.getLogger(__name__)


def user_cache_key(user_id: str) -> str:
    return f"user:{user_id}"


class UserViewCache:
    """Read-through cache for public user views; implements CacheInvalidator."""

    def __init__(
        self,
        client: Any | None,
        ttl_seconds: int = 300,
        key_fn: Callable[[str], str] = user_cache_key,
    ):
        self._client = client
        self._ttl = ttl_seconds
        self._key_fn = key_fn

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 300) -> "UserViewCache":
        """Build from settings; empty URL disables caching."""
        if not url:
            return cls(None, ttl_seconds)
        return cls(Redis.from_url(url, decode_responses=True), ttl_seconds)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def get_or_load(
        self, user_id: UserId, loader: UserLoader,
    ) -> dict | None:
        key = self._key_fn(user_id)
        if self._client is not None:
            try:
                raw = await self._client.get(key)
                if raw is not None:
                    return json.loads(raw)
            except RedisError as e:
                logger.warning(f"User cache read failed for {key}: {e}")

        user = await loader(user_id)
        if user is None:
            return None
        view = user.to_public()
        if self._client is not None:
            try:
                await self._client.set(key, json.dumps(view), ex=self._ttl)
            except RedisError as e:
                logger.warning(f"User cache write failed for {key}: {e}")
        return view

    async def invalidate_users(self, user_ids: Iterable[UserId]) -> None:
        if self._client is None:
            return
        keys = [self._key_fn(uid) for uid in user_ids]
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as e:
            logger.warning(f"User cache invalidation failed ({len(keys)} keys): {e}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
