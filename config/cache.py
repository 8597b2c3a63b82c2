# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError
from config.settings import settings

_client: Optional[Redis] = None


async def get_redis() -> Redis:
    """
    Shared async Redis client for the record store and the rate limiter.
    Rows are JSON text, so responses are decoded to str.
    """
    global _client
    if _client is None:
        _client = from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_keepalive=True,
            health_check_interval=30,
        )
        # Fail fast on startup if Redis is unreachable.
        await _client.ping()
    return _client


async def redis_alive() -> bool:
    try:
        r = await get_redis()
        return bool(await r.ping())
    except (RedisError, OSError):
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
