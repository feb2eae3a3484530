"""PostgreSQL persistence for events, bookings, availability and users."""

from booking_api.db.availability import PostgresAvailabilityStore
from booking_api.db.bookings import PostgresBookingStore
from booking_api.db.core import close_pool, get_pool_stats, init_pool
from booking_api.db.events import PostgresEventStore
from booking_api.db.users import PostgresUserDirectory

__all__ = [
    "PostgresAvailabilityStore",
    "PostgresBookingStore",
    "PostgresEventStore",
    "PostgresUserDirectory",
    "close_pool",
    "get_pool_stats",
    "init_pool",
]
