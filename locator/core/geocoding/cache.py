"""Resolution result caches.

The resolver depends only on the ``ResultCache`` protocol. Two backends are
provided: a bounded in-process LRU with optional expiry, and Redis with a TTL
for deployments that run several workers.
"""

import hashlib
import time
from collections import OrderedDict
from typing import Any, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from locator.core.geocoding.models import ResolutionResult
from locator.core.logging import get_logger

logger = get_logger(__name__)


class ResultCache(Protocol):
    """Storage for resolution results keyed by normalized input."""

    async def get(self, key: str) -> Optional[ResolutionResult]: ...

    async def set(self, key: str, result: ResolutionResult) -> None: ...

    async def clear(self) -> None: ...


class InMemoryResultCache:
    """Least-recently-used cache with a fixed capacity and optional TTL.

    Not locked: concurrent resolutions of the same key may both miss and
    both store, which is harmless since they compute the same value.
    """

    def __init__(self, max_size: int = 1000, ttl: Optional[float] = None) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl or None
        self._entries: "OrderedDict[str, tuple[float, ResolutionResult]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[ResolutionResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, result = entry
        if self.ttl is not None and time.monotonic() - stored_at > self.ttl:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return result

    async def set(self, key: str, result: ResolutionResult) -> None:
        self._entries[key] = (time.monotonic(), result)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    async def clear(self) -> None:
        self._entries.clear()


class RedisResultCache:
    """Redis-backed cache storing results as JSON under hashed keys.

    Redis failures are logged and treated as misses so a cache outage never
    fails a resolution.
    """

    def __init__(
        self,
        redis: "Redis[Any]",
        ttl: Optional[int] = 2592000,
        prefix: str = "geocode:resolve:",
    ) -> None:
        self.redis = redis
        self.ttl = ttl or None
        self.prefix = prefix

    def _redis_key(self, key: str) -> str:
        # Not security-critical, sha256 only keeps key length bounded
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return f"{self.prefix}{digest}"

    async def get(self, key: str) -> Optional[ResolutionResult]:
        try:
            cached = await self.redis.get(self._redis_key(key))
        except RedisError as e:
            logger.warning("geocode_cache_error", operation="get", error=str(e))
            return None
        if cached is None:
            return None
        try:
            return ResolutionResult.model_validate_json(cached)
        except ValueError as e:
            logger.warning("geocode_cache_error", operation="decode", error=str(e))
            return None

    async def set(self, key: str, result: ResolutionResult) -> None:
        payload = result.model_dump_json()
        try:
            if self.ttl:
                await self.redis.setex(self._redis_key(key), self.ttl, payload)
            else:
                await self.redis.set(self._redis_key(key), payload)
        except RedisError as e:
            logger.warning("geocode_cache_error", operation="set", error=str(e))

    async def clear(self) -> None:
        try:
            async for redis_key in self.redis.scan_iter(match=f"{self.prefix}*"):
                await self.redis.delete(redis_key)
        except RedisError as e:
            logger.warning("geocode_cache_error", operation="clear", error=str(e))
