"""Weekly availability templates.

Intervals are wall-clock times compared against the candidate range in the
range's own UTC offset; no timezone conversion is done.
"""

import logging
from datetime import date, datetime, timedelta

from booking_api.models.availability import (
    WEEKDAYS,
    Availability,
    DayAvailability,
    default_days,
)
from booking_api.scheduling.ports import AvailabilityStore
from booking_api.scheduling.time_range import TimeRange

logger = logging.getLogger(__name__)

_LAST_MINUTE = 23 * 60 + 59


def weekday_label(d: date) -> str:
    return WEEKDAYS[d.isoweekday() % 7]


def _clock_minutes(clock: str) -> int:
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def _minutes_since(midnight: datetime, moment: datetime) -> int:
    return int((moment - midnight).total_seconds() // 60)


def _open_all_day(entry: DayAvailability | None) -> bool:
    return entry is None or (not entry.unavailable and not entry.intervals)


def covers(availability: Availability, candidate: TimeRange) -> bool:
    """Whether ``candidate`` falls inside the stated weekly availability.

    Days missing from the template count as open. A day with no intervals is
    open all day. A range spanning several days needs every day open all day.
    """
    first = candidate.start.date()
    last = (candidate.end - timedelta(microseconds=1)).date()

    if first != last:
        d = first
        while d <= last:
            if not _open_all_day(availability.day(weekday_label(d))):
                return False
            d += timedelta(days=1)
        return True

    entry = availability.day(weekday_label(first))
    if entry is None:
        return True
    if entry.unavailable:
        return False
    if not entry.intervals:
        return True

    midnight = candidate.start.replace(hour=0, minute=0, second=0, microsecond=0)
    start_min = _minutes_since(midnight, candidate.start)
    # Intervals end at 23:59 at the latest; a range ending at midnight fits one.
    end_min = min(_minutes_since(midnight, candidate.end), _LAST_MINUTE)
    return any(
        _clock_minutes(i.start) <= start_min and end_min <= _clock_minutes(i.end)
        for i in entry.intervals
    )


class AvailabilityService:
    def __init__(self, store: AvailabilityStore) -> None:
        self._store = store

    async def get_or_create(self, user_id: str) -> Availability:
        """Return the user's template, creating the always-available default."""
        availability = await self._store.get(user_id)
        if availability is None:
            availability = await self._store.create(
                Availability(user_id=user_id, days=default_days())
            )
            logger.info("Created default availability for user=%s", user_id)
        return availability

    async def replace(self, user_id: str, days: list[DayAvailability] | None) -> Availability:
        availability = await self._store.get(user_id)
        if availability is None:
            return await self._store.create(Availability(user_id=user_id, days=days or []))
        availability.days = days or []
        return await self._store.save(availability)

    async def covers(self, user_id: str, candidate: TimeRange) -> bool:
        return covers(await self.get_or_create(user_id), candidate)
