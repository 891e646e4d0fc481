"""
Tests for CacheManager: Redis path, in-memory fallback and TTL handling.
"""
import asyncio
import fnmatch
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.features.analysis.services import cache as cache_module
from app.features.analysis.services.cache import CacheManager, job_cache_prefix


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the cache manager."""

    def __init__(self):
        self.store = {}
        self.set_calls = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, px=None):
        self.set_calls.append((key, value, px))
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def scan_iter(self, match=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatch(key, match):
                yield key


class BrokenRedis:
    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise RedisConnectionError("connection refused")

    get = set = delete = exists = _fail


class TestMemoryCache:
    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = CacheManager("analysis:job-1", client=None)

        await cache.set("html:https://example.com", {"html": "<p>hi</p>"})

        assert await cache.get("html:https://example.com") == {"html": "<p>hi</p>"}
        assert await cache.has("html:https://example.com") is True
        assert "analysis:job-1:html:https://example.com" in cache_module._memory_cache

    @pytest.mark.asyncio
    async def test_missing_key(self):
        cache = CacheManager("analysis:job-1", client=None)

        assert await cache.get("nothing") is None
        assert await cache.has("nothing") is False

    @pytest.mark.asyncio
    async def test_entry_expires(self):
        cache = CacheManager("analysis:job-1", client=None)

        await cache.set("short", "value", ttl=0.05)
        assert await cache.get("short") == "value"

        await asyncio.sleep(0.1)

        assert await cache.get("short") is None
        assert await cache.has("short") is False

    @pytest.mark.asyncio
    async def test_zero_ttl_leaves_key_absent(self):
        cache = CacheManager("analysis:job-1", client=None)
        await cache.set("key", "old")

        await cache.set("key", "new", ttl=0)

        assert await cache.get("key") is None
        assert await cache.has("key") is False

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = CacheManager("analysis:job-1", client=None)
        await cache.set("key", 1)

        await cache.delete("key")

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_clear_only_touches_own_prefix(self):
        mine = CacheManager("analysis:job-1", client=None)
        other = CacheManager("analysis:job-2", client=None)
        await mine.set("a", 1)
        await mine.set("b", 2)
        await other.set("a", 3)

        await mine.clear()

        assert await mine.get("a") is None
        assert await mine.get("b") is None
        assert await other.get("a") == 3

    @pytest.mark.asyncio
    async def test_undecodable_entry_reads_as_absent(self):
        cache = CacheManager("analysis:job-1", client=None)
        cache_module._memory_cache["analysis:job-1:bad"] = ("{not json", float("inf"))

        assert await cache.get("bad") is None

    @pytest.mark.asyncio
    async def test_write_sweeps_expired_entries_of_other_jobs(self):
        for i in range(50):
            await CacheManager(f"analysis:job-{i}", client=None).set("k", "x" * 1000, ttl=0.01)
        assert len(cache_module._memory_cache) == 50

        await asyncio.sleep(0.05)
        await CacheManager("analysis:job-new", client=None).set("k", "fresh")

        assert list(cache_module._memory_cache) == ["analysis:job-new:k"]

    @pytest.mark.asyncio
    async def test_memory_cache_is_bounded(self, monkeypatch):
        monkeypatch.setattr(cache_module, "_memory_cache", cache_module.new_memory_cache(2))
        cache = CacheManager("analysis:job-1", client=None)

        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)

        assert len(cache_module._memory_cache) == 2
        assert await cache.get("c") == 3

    @pytest.mark.asyncio
    async def test_pydantic_values_are_json_encoded(self, job):
        cache = CacheManager("analysis:job-1", client=None)

        await cache.set("job", job.options)

        assert await cache.get("job") == job.options.model_dump()


class TestRedisCache:
    @pytest.mark.asyncio
    async def test_values_stored_as_json_with_millisecond_ttl(self):
        redis = FakeRedis()
        cache = CacheManager("analysis:job-1", client=redis)

        await cache.set("key", {"a": 1}, ttl=2)

        key, value, px = redis.set_calls[0]
        assert key == "analysis:job-1:key"
        assert json.loads(value) == {"a": 1}
        assert px == 2000
        assert await cache.get("key") == {"a": 1}
        assert await cache.has("key") is True

    @pytest.mark.asyncio
    async def test_default_ttl_is_used(self):
        redis = FakeRedis()
        cache = CacheManager("analysis:job-1", client=redis, default_ttl=3600)

        await cache.set("key", "v")

        assert redis.set_calls[0][2] == 3_600_000

    @pytest.mark.asyncio
    async def test_clear_scans_prefix(self):
        redis = FakeRedis()
        redis.store["analysis:job-2:keep"] = json.dumps(1)
        cache = CacheManager("analysis:job-1", client=redis)
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear()

        assert list(redis.store) == ["analysis:job-2:keep"]

    @pytest.mark.asyncio
    async def test_zero_ttl_deletes_redis_key(self):
        redis = FakeRedis()
        cache = CacheManager("analysis:job-1", client=redis)
        await cache.set("key", "v")

        await cache.set("key", "v", ttl=0)

        assert "analysis:job-1:key" not in redis.store

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_when_redis_fails(self):
        redis = BrokenRedis()
        cache = CacheManager("analysis:job-1", client=redis)

        await cache.set("key", {"a": 1})
        assert cache.use_redis is False

        assert await cache.get("key") == {"a": 1}
        assert await cache.has("key") is True
        await cache.delete("key")
        assert await cache.get("key") is None

        # Redis is not retried after the first failure
        assert redis.calls == 1


def test_job_cache_prefix():
    assert job_cache_prefix("abc") == "analysis:abc"
