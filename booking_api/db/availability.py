from psycopg.types.json import Json

from booking_api.db.core import _get_connection
from booking_api.models.availability import Availability


def _days_json(availability: Availability) -> Json:
    return Json([d.model_dump(mode="json") for d in availability.days])


class PostgresAvailabilityStore:
    async def get(self, user_id: str) -> Availability | None:
        async with _get_connection() as conn:
            row = await (
                await conn.execute("SELECT user_id, days FROM availability WHERE user_id = %s", (user_id,))
            ).fetchone()
            if not row:
                return None
            return Availability(user_id=row[0], days=row[1] or [])

    async def create(self, availability: Availability) -> Availability:
        async with _get_connection() as conn:
            # A concurrent first read may already have created the default row.
            await conn.execute(
                """INSERT INTO availability (user_id, days) VALUES (%s, %s)
                   ON CONFLICT (user_id) DO NOTHING""",
                (availability.user_id, _days_json(availability)),
            )
        return availability

    async def save(self, availability: Availability) -> Availability:
        async with _get_connection() as conn:
            await conn.execute(
                "UPDATE availability SET days = %s WHERE user_id = %s",
                (_days_json(availability), availability.user_id),
            )
        return availability
