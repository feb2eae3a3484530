from typing import Any

from psycopg.types.json import Json

from booking_api.db.core import _get_connection
from booking_api.models.events import Event
from booking_api.models.participants import Participant, dedupe_participants
from booking_api.scheduling.time_range import TimeRange


_EVENT_COLUMNS = (
    "id, host_id, host_name, title, description, start_time, end_time, password, "
    "banner_color, title_color, link_color, banner_url, meeting_link, participants, is_active"
)


def _participants_json(participants: list[Participant]) -> Json:
    return Json([p.model_dump(mode="json") for p in dedupe_participants(participants)])


def _participant_filter(user_id: str) -> Json:
    return Json([{"user_id": user_id}])


def _row_to_event(row: tuple[Any, ...]) -> Event:
    return Event(
        id=row[0],
        host_id=row[1],
        host_name=row[2] or "",
        title=row[3],
        description=row[4],
        start_time=row[5],
        end_time=row[6],
        password=row[7],
        banner_color=row[8],
        title_color=row[9],
        link_color=row[10],
        banner_url=row[11],
        meeting_link=row[12],
        participants=row[13] or [],
        is_active=row[14],
    )


def _event_values(event: Event) -> tuple[Any, ...]:
    return (
        event.host_id,
        event.host_name,
        event.title,
        event.description,
        event.start_time,
        event.end_time,
        event.password,
        event.banner_color,
        event.title_color,
        event.link_color,
        event.banner_url,
        event.meeting_link,
        _participants_json(event.participants),
        event.is_active,
    )


class PostgresEventStore:
    async def get(self, event_id: str, host_id: str | None = None) -> Event | None:
        sql = f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = %s"
        params: tuple[Any, ...] = (event_id,)
        if host_id is not None:
            sql += " AND host_id = %s"
            params += (host_id,)
        async with _get_connection() as conn:
            row = await (await conn.execute(sql, params)).fetchone()
            return _row_to_event(row) if row else None

    async def list_for_user(self, user_id: str) -> list[Event]:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"""SELECT {_EVENT_COLUMNS} FROM events
                    WHERE host_id = %s OR participants @> %s
                    ORDER BY start_time""",
                (user_id, _participant_filter(user_id)),
            )
            return [_row_to_event(row) async for row in cur]

    async def first_overlapping(
        self,
        host_id: str,
        candidate: TimeRange,
        exclude_id: str | None = None,
    ) -> Event | None:
        async with _get_connection() as conn:
            row = await (
                await conn.execute(
                    f"""SELECT {_EVENT_COLUMNS} FROM events
                        WHERE host_id = %s AND start_time < %s AND end_time > %s
                          AND (%s::text IS NULL OR id <> %s)
                        LIMIT 1""",
                    (host_id, candidate.end, candidate.start, exclude_id, exclude_id),
                )
            ).fetchone()
            return _row_to_event(row) if row else None

    async def create(self, event: Event) -> Event:
        async with _get_connection() as conn:
            await conn.execute(
                f"""INSERT INTO events ({_EVENT_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                (event.id, *_event_values(event)),
            )
        return event

    async def save(self, event: Event) -> Event:
        async with _get_connection() as conn:
            await conn.execute(
                """UPDATE events SET host_id = %s, host_name = %s, title = %s, description = %s,
                       start_time = %s, end_time = %s, password = %s, banner_color = %s,
                       title_color = %s, link_color = %s, banner_url = %s, meeting_link = %s,
                       participants = %s, is_active = %s
                   WHERE id = %s""",
                (*_event_values(event), event.id),
            )
        return event

    async def delete(self, event_id: str, host_id: str) -> Event | None:
        async with _get_connection() as conn:
            row = await (
                await conn.execute(
                    f"DELETE FROM events WHERE id = %s AND host_id = %s RETURNING {_EVENT_COLUMNS}",
                    (event_id, host_id),
                )
            ).fetchone()
            return _row_to_event(row) if row else None
