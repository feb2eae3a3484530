import logging
from typing import Any

from booking_api.db.core import _get_connection
from booking_api.db.events import _participant_filter, _participants_json
from booking_api.models.bookings import Booking
from booking_api.scheduling.time_range import TimeRange

logger = logging.getLogger(__name__)

_BOOKING_COLUMNS = (
    "id, host_id, event_id, title, details, date_label, time_label, "
    "start_time, end_time, status, participants"
)


def _row_to_booking(row: tuple[Any, ...]) -> Booking:
    return Booking(
        id=row[0],
        host_id=row[1],
        event_id=row[2],
        title=row[3],
        details=row[4],
        date_label=row[5],
        time_label=row[6],
        start_time=row[7],
        end_time=row[8],
        status=row[9],
        participants=row[10] or [],
    )


def _booking_values(booking: Booking) -> tuple[Any, ...]:
    # Participant ids are deduplicated again on every write.
    return (
        booking.host_id,
        booking.event_id,
        booking.title,
        booking.details,
        booking.date_label,
        booking.time_label,
        booking.start_time,
        booking.end_time,
        booking.status,
        _participants_json(booking.participants),
    )


class PostgresBookingStore:
    async def get(self, booking_id: str, host_id: str | None = None) -> Booking | None:
        sql = f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE id = %s"
        params: tuple[Any, ...] = (booking_id,)
        if host_id is not None:
            sql += " AND host_id = %s"
            params += (host_id,)
        async with _get_connection() as conn:
            row = await (await conn.execute(sql, params)).fetchone()
            return _row_to_booking(row) if row else None

    async def list_for_user(self, user_id: str, status: str | None = None) -> list[Booking]:
        sql = f"""SELECT {_BOOKING_COLUMNS} FROM bookings
                  WHERE (host_id = %s OR participants @> %s)"""
        params: tuple[Any, ...] = (user_id, _participant_filter(user_id))
        if status:
            sql += " AND status = %s"
            params += (status,)
        sql += " ORDER BY start_time"
        async with _get_connection() as conn:
            cur = await conn.execute(sql, params)
            return [_row_to_booking(row) async for row in cur]

    async def list_by_event(self, event_id: str) -> list[Booking]:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE event_id = %s ORDER BY start_time",
                (event_id,),
            )
            return [_row_to_booking(row) async for row in cur]

    async def first_overlapping(
        self,
        host_id: str,
        candidate: TimeRange,
        exclude_id: str | None = None,
    ) -> Booking | None:
        async with _get_connection() as conn:
            row = await (
                await conn.execute(
                    f"""SELECT {_BOOKING_COLUMNS} FROM bookings
                        WHERE host_id = %s AND start_time < %s AND end_time > %s
                          AND status <> 'Canceled'
                          AND (%s::text IS NULL OR id <> %s)
                        LIMIT 1""",
                    (host_id, candidate.end, candidate.start, exclude_id, exclude_id),
                )
            ).fetchone()
            return _row_to_booking(row) if row else None

    async def create(self, booking: Booking) -> Booking:
        async with _get_connection() as conn:
            await conn.execute(
                f"""INSERT INTO bookings ({_BOOKING_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                (booking.id, *_booking_values(booking)),
            )
        return booking

    async def save(self, booking: Booking) -> Booking:
        async with _get_connection() as conn:
            await conn.execute(
                """UPDATE bookings SET host_id = %s, event_id = %s, title = %s, details = %s,
                       date_label = %s, time_label = %s, start_time = %s, end_time = %s,
                       status = %s, participants = %s
                   WHERE id = %s""",
                (*_booking_values(booking), booking.id),
            )
        return booking

    async def delete(self, booking_id: str, host_id: str) -> Booking | None:
        async with _get_connection() as conn:
            row = await (
                await conn.execute(
                    f"DELETE FROM bookings WHERE id = %s AND host_id = %s RETURNING {_BOOKING_COLUMNS}",
                    (booking_id, host_id),
                )
            ).fetchone()
            return _row_to_booking(row) if row else None

    async def set_status_for_event(self, event_id: str, status: str) -> int:
        async with _get_connection() as conn:
            cur = await conn.execute(
                "UPDATE bookings SET status = %s WHERE event_id = %s",
                (status, event_id),
            )
            logger.debug("Set status=%s on %d booking(s) for event=%s", status, cur.rowcount, event_id)
            return cur.rowcount
