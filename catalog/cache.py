import asyncio
import json
import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Key-value cache backed by Redis, with a per-entry TTL.

    All public methods are safe to call even when Redis is unavailable:
    read failures count as a miss and write/delete failures are skipped,
    so the store stays the only hard dependency of a request. Every Redis
    round trip is bounded by *timeout* seconds.
    """

    def __init__(self, url: str, timeout: float = 2.0, client: redis.Redis | None = None) -> None:
        self._url = url
        self._timeout = timeout
        self._redis: redis.Redis | None = client
        self._hits: int = 0
        self._misses: int = 0
        self._errors: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        if self._redis is None:
            self._redis = redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=self._timeout,
                socket_timeout=self._timeout,
            )
        # Ping to surface mis-configuration early (non-fatal).
        try:
            await asyncio.wait_for(self._redis.ping(), self._timeout)
            logger.info("Redis connected: %s", self._url)
        except Exception as exc:
            logger.warning("Redis ping failed, serving from the store only: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """
        Return the cached value for *key*, or None on a miss / error.

        Increments hit/miss counters for observability.
        """
        if self._redis is None:
            self._misses += 1
            return None
        try:
            data = await asyncio.wait_for(self._redis.get(key), self._timeout)
        except Exception as exc:
            logger.warning("Cache GET error for key=%r, treating as miss: %s", key, exc)
            self._errors += 1
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        try:
            value = json.loads(data)
        except ValueError:
            logger.warning("Cache entry for key=%r is not valid JSON, treating as miss", key)
            self._errors += 1
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def set(self, key: str, value: dict | list, ttl: int) -> None:
        """
        Store *value* under *key* for *ttl* seconds.

        Serialisation errors and Redis failures are logged but never
        propagated; a cache write failure must never break a request.
        """
        if self._redis is None:
            return
        try:
            serialised = json.dumps(value, default=str)
            await asyncio.wait_for(self._redis.set(key, serialised, ex=ttl), self._timeout)
        except Exception as exc:
            logger.warning("Cache SET error for key=%r, skipping: %s", key, exc)
            self._errors += 1

    async def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
        if self._redis is None:
            return
        try:
            await asyncio.wait_for(self._redis.delete(key), self._timeout)
            logger.debug("Cache invalidated key=%r", key)
        except Exception as exc:
            logger.warning("Cache DELETE error for key=%r: %s", key, exc)
            self._errors += 1

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for the metrics endpoint."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }
