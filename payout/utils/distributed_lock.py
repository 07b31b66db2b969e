"""
Distributed lock.

Single-writer lock for distribution runs. Uses a Redis lock when a client is
given, otherwise a lock local to this process.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from redis.exceptions import LockError

from payout.utils.exceptions import LockAcquisitionError

# Process-local fallback locks, keyed by lock name
_local_locks: dict[str, asyncio.Lock] = {}


class DistributedLock:
    """
    Named mutual exclusion across workers.

    Usage:
        lock = DistributedLock(redis_client=redis_client)
        async with lock.lock("profit_distribution", timeout=3600):
            ...
    """

    def __init__(self, redis_client=None, prefix: str = "payout:lock:") -> None:
        """
        Initialize distributed lock.

        Args:
            redis_client: redis.asyncio client (None = process-local lock)
            prefix: Redis key prefix
        """
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: int = 60,
        blocking_timeout: float | None = 0,
    ) -> AsyncIterator[None]:
        """
        Hold the named lock for the duration of the block.

        Args:
            key: Lock name
            timeout: Lock TTL in seconds (Redis only)
            blocking_timeout: Seconds to wait for the lock, 0 = fail fast,
                None = wait forever

        Raises:
            LockAcquisitionError: If the lock could not be acquired in time
        """
        if self.redis_client is None:
            async with self._local_lock(key, blocking_timeout):
                yield
            return

        redis_lock = self.redis_client.lock(
            f"{self.prefix}{key}",
            timeout=timeout,
            blocking_timeout=blocking_timeout,
        )
        acquired = await redis_lock.acquire(blocking=blocking_timeout != 0)
        if not acquired:
            logger.warning("Lock busy", extra={"key": key})
            raise LockAcquisitionError(key)

        logger.debug("Lock acquired", extra={"key": key, "timeout": timeout})
        try:
            yield
        finally:
            try:
                await redis_lock.release()
            except LockError as e:
                # TTL expired before the block finished
                logger.warning(
                    "Lock already released",
                    extra={"key": key, "error": str(e)},
                )

    @asynccontextmanager
    async def _local_lock(
        self, key: str, blocking_timeout: float | None
    ) -> AsyncIterator[None]:
        local = _local_locks.setdefault(key, asyncio.Lock())

        if blocking_timeout == 0:
            if local.locked():
                logger.warning("Lock busy", extra={"key": key})
                raise LockAcquisitionError(key)
            await local.acquire()
        else:
            try:
                await asyncio.wait_for(local.acquire(), timeout=blocking_timeout)
            except TimeoutError as e:
                logger.warning("Lock busy", extra={"key": key})
                raise LockAcquisitionError(key) from e

        try:
            yield
        finally:
            local.release()
