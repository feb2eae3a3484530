"""Per-user write serialization.

Conflict checks and the writes they guard run under the host's lock so two
overlapping requests for the same user cannot both pass the check. Redis
locks cover multiple API workers; without Redis an in-process lock per user
is used.
"""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import LockError

from booking_api.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class UserLocks:
    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        *,
        prefix: str = "booking-api:lock:user:",
        timeout: float = 10.0,
        blocking_timeout: float = 5.0,
    ) -> None:
        self._redis = redis_client
        self._prefix = prefix
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout
        # Entries live only while a holder or waiter references the lock.
        self._local: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def distributed(self) -> bool:
        return self._redis is not None

    def _busy(self, user_id: str) -> ServiceUnavailableError:
        logger.warning("Timed out waiting for schedule lock user=%s", user_id)
        return ServiceUnavailableError(detail="Schedule is busy, try again", user_id=user_id)

    def _local_lock(self, user_id: str) -> asyncio.Lock:
        lock = self._local.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._local[user_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        if self._redis is None:
            lock = self._local_lock(user_id)
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._blocking_timeout)
            except TimeoutError:
                raise self._busy(user_id) from None
            try:
                yield
            finally:
                lock.release()
            return

        lock = self._redis.lock(
            f"{self._prefix}{user_id}",
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        if not await lock.acquire():
            raise self._busy(user_id)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning("Schedule lock for user=%s expired before release", user_id)
