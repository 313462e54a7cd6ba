from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from examprep.services.explanation_cache import ExplanationCache, explanation_key


class _FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> bytes | None:
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.values[key] = value.encode("utf-8")
        self.ttls[key] = ex
        return True


class _BrokenRedis:
    async def get(self, key: str):
        raise RedisConnectionError("redis down")

    async def set(self, key: str, value: str, ex: int | None = None):
        raise RedisConnectionError("redis down")


@pytest.mark.asyncio
async def test_cache_round_trip_uses_ttl() -> None:
    client = _FakeRedis()
    cache = ExplanationCache(client, ttl_seconds=3600)

    assert await cache.get(12) is None
    await cache.set(12, "Because the ratio is 3:4.")

    assert await cache.get(12) == "Because the ratio is 3:4."
    assert client.ttls[explanation_key(12)] == 3600


@pytest.mark.asyncio
async def test_redis_failures_degrade_to_miss() -> None:
    cache = ExplanationCache(_BrokenRedis(), ttl_seconds=60)

    await cache.set(1, "text")
    assert await cache.get(1) is None


@pytest.mark.asyncio
async def test_cache_without_client_is_a_noop() -> None:
    cache = ExplanationCache(None, ttl_seconds=60)

    await cache.set(1, "text")
    assert await cache.get(1) is None
