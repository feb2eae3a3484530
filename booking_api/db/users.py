from typing import Any

from booking_api.db.core import _get_connection
from booking_api.models.users import User

_USER_COLUMNS = "id, email, first_name, last_name, avatar"


def _row_to_user(row: tuple[Any, ...]) -> User:
    return User(
        id=row[0],
        email=row[1],
        first_name=row[2] or "",
        last_name=row[3] or "",
        avatar=row[4],
    )


class PostgresUserDirectory:
    """Read-only view of the users table owned by the auth service."""

    async def find_by_id(self, user_id: str) -> User | None:
        async with _get_connection() as conn:
            cur = await conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
            row = await cur.fetchone()
            return _row_to_user(row) if row else None

    async def find_by_email(self, email: str) -> User | None:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE lower(email) = lower(%s)",
                (email,),
            )
            row = await cur.fetchone()
            return _row_to_user(row) if row else None

    async def find_many(self, user_ids: list[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ANY(%s)",
                (list(user_ids),),
            )
            users = {}
            async for row in cur:
                user = _row_to_user(row)
                users[user.id] = user
            return users
