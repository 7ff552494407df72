import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from ecocoach.services import cache


@pytest.fixture
def redis_client():
    client = AsyncMock()
    cache.set_cache_client(client)
    return client


class TestWithoutClient:
    async def test_operations_are_noops(self):
        assert await cache.cache_data("k", {"a": 1}) is False
        assert await cache.get_cached_data("k") is None
        assert await cache.delete_cached_data("k") is False

    async def test_connect_without_url(self):
        assert await cache.connect_cache(None) is None
        assert cache.get_cache_client() is None


class TestWithClient:
    async def test_cache_data_serializes_with_ttl(self, redis_client):
        assert await cache.cache_data("insights:u:month", {"trip_count": 3}, ttl=60) is True
        redis_client.setex.assert_awaited_once_with("insights:u:month", 60, json.dumps({"trip_count": 3}))

    async def test_get_cached_data(self, redis_client):
        redis_client.get.return_value = json.dumps({"trip_count": 3})
        assert await cache.get_cached_data("k") == {"trip_count": 3}

    async def test_get_miss(self, redis_client):
        redis_client.get.return_value = None
        assert await cache.get_cached_data("k") is None

    async def test_delete_keys(self, redis_client):
        assert await cache.delete_cached_data("a", "b") is True
        redis_client.delete.assert_awaited_once_with("a", "b")

    async def test_errors_are_logged_and_swallowed(self, redis_client, caplog):
        redis_client.get.side_effect = RedisError("boom")
        redis_client.setex.side_effect = RedisError("boom")
        redis_client.delete.side_effect = RedisError("boom")

        assert await cache.get_cached_data("k") is None
        assert await cache.cache_data("k", 1) is False
        assert await cache.delete_cached_data("k") is False
        assert "Redis cache get error" in caplog.text


class TestConnect:
    async def test_unreachable_redis_disables_cache(self, monkeypatch):
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")
        monkeypatch.setattr(cache.aioredis, "from_url", lambda *args, **kwargs: client)

        assert await cache.connect_cache("redis://localhost:6379/0") is None
        assert cache.get_cache_client() is None
        client.aclose.assert_awaited_once()

    async def test_connect_and_close(self, monkeypatch):
        client = AsyncMock()
        monkeypatch.setattr(cache.aioredis, "from_url", lambda *args, **kwargs: client)

        assert await cache.connect_cache("redis://localhost:6379/0") is client
        assert cache.get_cache_client() is client

        await cache.close_cache()
        client.aclose.assert_awaited_once()
        assert cache.get_cache_client() is None


def test_insights_cache_key():
    assert cache.insights_cache_key("abc", "week") == "insights:abc:week"
