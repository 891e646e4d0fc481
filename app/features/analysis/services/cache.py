"""
Cache Manager for analysis artifacts.

Values are JSON encoded and stored under ``{prefix}:{key}`` in Redis. When
Redis is not configured or stops answering, the manager switches to a
process-wide in-memory TLRU cache for the rest of its lifetime. That cache
holds at most ``CACHE_MEMORY_MAX_ENTRIES`` entries and sweeps expired ones on
every write. Cached artifacts are not critical, so a miss is always preferred
over failing the analysis.
"""
import json
import logging
import time
from typing import Any, Optional, Tuple

from cachetools import TLRUCache
from fastapi.encoders import jsonable_encoder
from redis.exceptions import RedisError

from app.platform.cache.redis import get_redis_client
from app.platform.config import settings

logger = logging.getLogger(__name__)


def _expires_at(key: str, entry: Tuple[str, float], now: float) -> float:
    return now + entry[1]


def new_memory_cache(maxsize: int) -> TLRUCache:
    """key -> (serialized value, ttl in seconds), evicted on expiry or when full."""
    return TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=time.monotonic)


_memory_cache: TLRUCache = new_memory_cache(settings.CACHE_MEMORY_MAX_ENTRIES)

_UNSET = object()


class CacheManager:
    def __init__(self, prefix: Optional[str] = None, client: Any = _UNSET, default_ttl: Optional[float] = None):
        self.prefix = prefix or settings.CACHE_KEY_PREFIX
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_DEFAULT_TTL_SECONDS
        self._client = get_redis_client() if client is _UNSET else client
        self.use_redis = self._client is not None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _mark_unavailable(self, operation: str, error: Exception) -> None:
        logger.warning(f"Redis unavailable during {operation} ({error}), using memory cache for '{self.prefix}'")
        self.use_redis = False

    async def get(self, key: str) -> Any:
        """Return the cached value, or None if absent, expired or undecodable."""
        cache_key = self._key(key)

        if self.use_redis:
            try:
                raw = await self._client.get(cache_key)
                return _decode(raw, cache_key)
            except (RedisError, OSError) as e:
                self._mark_unavailable("get", e)

        entry = _memory_cache.get(cache_key)
        if entry is None:
            return None
        return _decode(entry[0], cache_key)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value for ``ttl`` seconds (default one hour). A ttl of zero or
        less leaves the key absent.
        """
        cache_key = self._key(key)
        ttl = self.default_ttl if ttl is None else ttl
        serialized = json.dumps(jsonable_encoder(value))

        if ttl <= 0:
            await self.delete(key)
            return

        if self.use_redis:
            try:
                await self._client.set(cache_key, serialized, px=max(1, int(ttl * 1000)))
                return
            except (RedisError, OSError) as e:
                self._mark_unavailable("set", e)

        _memory_cache.expire()
        _memory_cache[cache_key] = (serialized, ttl)

    async def delete(self, key: str) -> None:
        cache_key = self._key(key)

        if self.use_redis:
            try:
                await self._client.delete(cache_key)
                return
            except (RedisError, OSError) as e:
                self._mark_unavailable("delete", e)

        _memory_cache.pop(cache_key, None)

    async def has(self, key: str) -> bool:
        cache_key = self._key(key)

        if self.use_redis:
            try:
                return await self._client.exists(cache_key) == 1
            except (RedisError, OSError) as e:
                self._mark_unavailable("has", e)

        return cache_key in _memory_cache

    async def clear(self) -> None:
        """Remove every entry under this prefix, and nothing else."""
        pattern = f"{self.prefix}:"

        if self.use_redis:
            try:
                keys = [k async for k in self._client.scan_iter(match=f"{pattern}*")]
                if keys:
                    await self._client.delete(*keys)
                return
            except (RedisError, OSError) as e:
                self._mark_unavailable("clear", e)

        for cache_key in [k for k in _memory_cache if k.startswith(pattern)]:
            _memory_cache.pop(cache_key, None)


def _decode(raw: Optional[str], cache_key: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.debug(f"Discarding undecodable cache entry {cache_key}")
        return None


def create_cache_manager(prefix: Optional[str] = None) -> CacheManager:
    return CacheManager(prefix)


def job_cache_prefix(job_id: str) -> str:
    return f"{settings.CACHE_KEY_PREFIX}:{job_id}"
