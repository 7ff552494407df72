"""
Optional Redis response cache.

Every helper is a no-op when no client is connected, and Redis errors are
logged and reported as a cache miss / failed write so the API keeps working
without the cache.
"""
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None


async def connect_cache(redis_url: Optional[str]) -> Optional[aioredis.Redis]:
    """Connect to Redis; leaves caching disabled when no URL is configured or Redis is down."""
    global _redis_client

    if not redis_url:
        logger.info("Redis URL not configured, response caching disabled")
        return None

    client = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error(f"Redis connection failed, continuing without cache: {e}")
        await client.aclose()
        return None

    _redis_client = client
    logger.info("Redis connected")
    return client


async def close_cache() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def set_cache_client(client: Optional[aioredis.Redis]) -> None:
    global _redis_client
    _redis_client = client


def get_cache_client() -> Optional[aioredis.Redis]:
    return _redis_client


async def cache_data(key: str, data: Any, ttl: int = 3600) -> bool:
    if _redis_client is None:
        return False
    try:
        await _redis_client.setex(key, ttl, json.dumps(data, default=str))
        return True
    except RedisError as e:
        logger.error(f"Redis cache set error for {key}: {e}")
        return False


async def get_cached_data(key: str) -> Optional[Any]:
    if _redis_client is None:
        return None
    try:
        data = await _redis_client.get(key)
    except RedisError as e:
        logger.error(f"Redis cache get error for {key}: {e}")
        return None
    return json.loads(data) if data else None


async def delete_cached_data(*keys: str) -> bool:
    if _redis_client is None or not keys:
        return False
    try:
        await _redis_client.delete(*keys)
        return True
    except RedisError as e:
        logger.error(f"Redis cache delete error: {e}")
        return False


def insights_cache_key(user_id: Any, period: str) -> str:
    return f"insights:{user_id}:{period}"
