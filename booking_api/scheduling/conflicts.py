import logging

from booking_api.scheduling.ports import OverlapQuery
from booking_api.scheduling.time_range import TimeRange

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Answers whether a user already hosts something overlapping a range.

    Each detector checks a single store. Events and bookings are checked
    independently of each other.
    """

    def __init__(self, store: OverlapQuery, kind: str) -> None:
        self._store = store
        self._kind = kind

    async def has_conflict(
        self,
        user_id: str,
        candidate: TimeRange,
        exclude_id: str | None = None,
    ) -> bool:
        existing = await self._store.first_overlapping(user_id, candidate, exclude_id=exclude_id)
        if existing is None:
            return False
        logger.info(
            "Time conflict for user=%s: %s %s overlaps %s - %s",
            user_id,
            self._kind,
            existing.id,
            candidate.start.isoformat(),
            candidate.end.isoformat(),
        )
        return True
