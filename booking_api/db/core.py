"""Connection pool shared by the PostgreSQL stores."""

import logging
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from booking_api.config import get_settings
from booking_api.errors import DatabaseError

_logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


async def _configure(conn: psycopg.AsyncConnection) -> None:
    # TIMESTAMPTZ values come back in UTC, matching how ranges are compared.
    await conn.execute("SET TIME ZONE 'UTC'")
    await conn.commit()


async def init_pool() -> None:
    """Open the pool and apply pending migrations."""
    global _pool
    if _pool is not None:
        return
    settings = get_settings().postgres
    _pool = AsyncConnectionPool(
        settings.get_dsn(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        configure=_configure,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await _pool.open()
    _logger.info(
        "Database pool open (host=%s db=%s min=%d max=%d)",
        settings.host,
        settings.database,
        settings.pool_min_size,
        settings.pool_max_size,
    )
    # Import here to avoid circular imports
    from booking_api.db.migrations import ensure_schema

    await ensure_schema()


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.close()
    _pool = None
    _logger.info("Database pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True):
    """Yield a pooled connection; driver errors surface as ``DatabaseError``.

    Without a pool (migrations run from a shell) a one-off connection is used.
    """
    try:
        if _pool is None:
            async with await psycopg.AsyncConnection.connect(
                get_settings().postgres.get_dsn(), autocommit=autocommit
            ) as conn:
                yield conn
        else:
            async with _pool.connection() as conn:
                # Pooled connections keep the mode of their previous borrower.
                await conn.set_autocommit(autocommit)
                yield conn
    except psycopg.Error as e:
        _logger.error("Database operation failed: %s", e)
        raise DatabaseError(detail=str(e)) from e


def get_pool_stats() -> dict[str, object]:
    """Pool occupancy for the health endpoint."""
    if _pool is None:
        return {"status": "not_initialized"}
    stats = _pool.get_stats()
    return {
        "status": "active",
        "size": stats["pool_size"],
        "available": stats["pool_available"],
        "waiting": stats["requests_waiting"],
    }
