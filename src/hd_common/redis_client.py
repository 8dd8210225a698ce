"""Redis access for the query rate limiter.

Redis holds nothing but short-lived counters. Ledger state (accounts and
checkpoints) lives only in PostgreSQL, so losing Redis never loses data.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the shared client, creating the pool on first use."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_pool


async def incr_window(redis: aioredis.Redis, key: str, ttl_seconds: int) -> int:
    """Bump a fixed-window counter; the first hit of a window sets its expiry."""
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, ttl_seconds)
    return count


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
