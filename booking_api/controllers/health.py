from fastapi import APIRouter
from typing import Dict

from booking_api import db, state
from booking_api.db.migrations import get_current_version
from booking_api.errors import DatabaseError

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, str]:
    redis_status = "disconnected"
    if state.redis_client:
        try:
            await state.redis_client.ping()
            redis_status = "healthy"
        except Exception:
            redis_status = "unhealthy"

    pool = db.get_pool_stats()
    database_status = "disconnected"
    schema_version = "unknown"
    if pool["status"] == "active":
        try:
            schema_version = str(await get_current_version())
            database_status = "healthy"
        except DatabaseError:
            database_status = "unhealthy"

    return {
        "status": "ok",
        "redis": redis_status,
        "locks": "redis" if state.user_locks and state.user_locks.distributed else "local",
        "database": database_status,
        "schema_version": schema_version,
        "pool": str(pool["status"]),
    }
