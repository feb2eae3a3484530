import asyncio
import gc

import fakeredis.aioredis as fakeredis
import pytest

from booking_api.errors import ServiceUnavailableError
from booking_api.scheduling.locks import UserLocks


class TestLocalLocks:
    @pytest.mark.asyncio
    async def test_serializes_same_user(self):
        locks = UserLocks()
        order = []

        async def worker(name):
            async with locks.hold("u1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])

    @pytest.mark.asyncio
    async def test_different_users_do_not_block(self):
        locks = UserLocks(blocking_timeout=0.05)
        async with locks.hold("u1"):
            async with locks.hold("u2"):
                pass

    @pytest.mark.asyncio
    async def test_busy_lock_raises_service_unavailable(self):
        locks = UserLocks(blocking_timeout=0.05)
        async with locks.hold("u1"):
            with pytest.raises(ServiceUnavailableError) as exc_info:
                async with locks.hold("u1"):
                    pass
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_released_after_error(self):
        locks = UserLocks(blocking_timeout=0.05)
        with pytest.raises(RuntimeError):
            async with locks.hold("u1"):
                raise RuntimeError("boom")
        async with locks.hold("u1"):
            pass

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self):
        locks = UserLocks()
        async with locks.hold("u1"):
            assert "u1" in locks._local
        gc.collect()
        assert "u1" not in locks._local

    def test_not_distributed_without_redis(self):
        assert UserLocks().distributed is False


class TestRedisLocks:
    @pytest.fixture
    def redis_client(self):
        return fakeredis.FakeRedis()

    @pytest.mark.asyncio
    async def test_lock_key_held_while_inside(self, redis_client):
        locks = UserLocks(redis_client, prefix="test:lock:")
        assert locks.distributed is True

        async with locks.hold("u1"):
            assert await redis_client.exists("test:lock:u1") == 1

        assert await redis_client.exists("test:lock:u1") == 0

    @pytest.mark.asyncio
    async def test_busy_lock_raises_service_unavailable(self, redis_client):
        locks = UserLocks(redis_client, prefix="test:lock:", blocking_timeout=0.05)
        async with locks.hold("u1"):
            with pytest.raises(ServiceUnavailableError):
                async with locks.hold("u1"):
                    pass
