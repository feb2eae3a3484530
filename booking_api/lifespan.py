"""Application startup and shutdown.

Sets up the Redis client used for per-user schedule locks, the PostgreSQL
pool and the stores, and publishes them on ``booking_api.state``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import FastAPI
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from booking_api import db, state
from booking_api.config import get_settings
from booking_api.scheduling.locks import UserLocks

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    user_locks: UserLocks | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis | None:
    """Initialize Redis for distributed schedule locks.

    Returns:
        Redis client, or None when disabled or unreachable.
    """
    settings = get_settings()
    if not settings.features.redis_locks:
        return None

    redis_pool = RedisConnectionPool(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password if settings.redis.password else None,
        max_connections=settings.redis.max_connections,
        timeout=settings.redis.pool_timeout_sec,
        health_check_interval=settings.redis.health_check_interval,
        socket_timeout=settings.redis.socket_timeout,
        socket_connect_timeout=settings.redis.socket_connect_timeout,
    )
    client = redis.Redis(connection_pool=redis_pool, decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        logger.warning("Redis unavailable, falling back to in-process locks: %s", e)
        await client.aclose()
        return None
    return client


def init_locks(redis_client: redis.Redis | None) -> UserLocks:
    settings = get_settings().scheduling
    return UserLocks(
        redis_client,
        prefix=settings.lock_prefix,
        timeout=settings.lock_timeout_sec,
        blocking_timeout=settings.lock_blocking_timeout_sec,
    )


async def init_database() -> bool:
    """Initialize the connection pool and publish the PostgreSQL stores.

    Returns:
        True if database was initialized, False otherwise.
    """
    if not get_settings().features.database:
        return False
    try:
        await db.init_pool()
    except Exception as e:
        logger.warning("Failed to initialize database: %s", e)
        return False
    state.event_store = db.PostgresEventStore()
    state.booking_store = db.PostgresBookingStore()
    state.availability_store = db.PostgresAvailabilityStore()
    state.user_directory = db.PostgresUserDirectory()
    return True


async def setup_resources() -> LifespanResources:
    """Set up all shared resources."""
    resources = LifespanResources()

    resources.redis_client = await init_redis()
    resources.user_locks = init_locks(resources.redis_client)
    resources.db_enabled = await init_database()

    state.redis_client = resources.redis_client
    state.user_locks = resources.user_locks

    logger.info(
        "Resources ready (db=%s, distributed_locks=%s)",
        resources.db_enabled,
        resources.user_locks.distributed,
    )
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown."""
    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Failed to close database pool: %s", e)

    if resources.redis_client:
        await resources.redis_client.aclose()

    state.redis_client = None
    state.user_locks = None
    state.event_store = None
    state.booking_store = None
    state.availability_store = None
    state.user_directory = None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)
