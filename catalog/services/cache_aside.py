"""
Cache-aside read path and the matching single-entry invalidation.

Read: check the cache, on a miss call the loader, store its result with a
fixed TTL and return it. Nothing is written for a loader that raises, so a
"not found" is re-checked against the store on the next request.

Write: after a successful update or delete the writer drops the
``article:{id}`` entry. List entries are not tracked per article; they are
served for at most one TTL after a write.
"""
import logging
import uuid
from typing import Awaitable, Callable

from catalog.cache import CacheManager
from catalog.services.query_planner import article_cache_key

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[dict]]


class CacheAsideReader:
    def __init__(self, cache: CacheManager, ttl: int) -> None:
        self._cache = cache
        self.ttl = ttl

    async def read(self, key: str, loader: Loader) -> dict:
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        logger.debug("Cache miss: %s", key)
        value = await loader()
        await self._cache.set(key, value, ttl=self.ttl)
        return value


class CacheInvalidator:
    def __init__(self, cache: CacheManager) -> None:
        self._cache = cache

    async def invalidate(self, article_id: uuid.UUID) -> None:
        await self._cache.delete(article_cache_key(article_id))
