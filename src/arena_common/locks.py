"""Per-market mutual exclusion for settlement and correction.

Lock key: "arena:correction:{market_id}". Acquisition is non-blocking: a
second request for the same market fails fast with ConcurrentCorrectionError
instead of queueing behind the first. The TTL bounds how long a crashed
worker can hold the lock; a live worker renews it through its MarketLease
before every unit of work and stops as soon as the lock is no longer its own.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from redis.asyncio.lock import Lock
from redis.exceptions import LockError

from config.settings import settings
from src.arena_common.errors import ConcurrentCorrectionError
from src.arena_common.redis_client import get_redis

logger = logging.getLogger(__name__)


class MarketLease:
    """Handle on a held market lock."""

    def __init__(self, market_id: str, lock: Lock) -> None:
        self.market_id = market_id
        self._lock = lock

    async def renew(self) -> None:
        """Reset the TTL, or raise ConcurrentCorrectionError if the lock was lost."""
        try:
            await self._lock.reacquire()
        except LockError:
            logger.warning("Lost lock for market %s", self.market_id)
            raise ConcurrentCorrectionError(self.market_id) from None


MarketLockFactory = Callable[[str], AbstractAsyncContextManager[MarketLease]]


def market_lock_key(market_id: str) -> str:
    return f"arena:correction:{market_id}"


@asynccontextmanager
async def market_lock(market_id: str) -> AsyncIterator[MarketLease]:
    redis = await get_redis()
    lock = redis.lock(
        market_lock_key(market_id),
        timeout=settings.CORRECTION_LOCK_TIMEOUT_SECONDS,
        blocking=False,
    )
    if not await lock.acquire():
        raise ConcurrentCorrectionError(market_id)
    try:
        yield MarketLease(market_id, lock)
    finally:
        try:
            await lock.release()
        except LockError:
            # TTL expired while we worked; another holder may own it now.
            logger.warning("Lock for market %s expired before release", market_id)
