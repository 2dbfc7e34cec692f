"""Shared Redis connection for per-market settlement locks.

Balances, bets and correction intents live in PostgreSQL. A Redis flush only
drops in-flight locks; an interrupted correction is still found through its
open intent row.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis  # noqa: PLW0603
    if _redis is None:
        _redis = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    return _redis


async def ping_redis() -> None:
    """Fail startup early when the lock backend is unreachable."""
    redis = await get_redis()
    await redis.ping()


async def close_redis() -> None:
    global _redis  # noqa: PLW0603
    if _redis is not None:
        await _redis.aclose()
        _redis = None
