"""Capabilities the scheduling core consumes.

The core only talks to these protocols; PostgreSQL implementations live in
``booking_api.db`` and tests use in-memory ones.
"""

from typing import Protocol

from booking_api.models.availability import Availability
from booking_api.models.bookings import Booking
from booking_api.models.events import Event
from booking_api.models.users import User
from booking_api.scheduling.time_range import TimeRange


class UserDirectory(Protocol):
    async def find_by_id(self, user_id: str) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def find_many(self, user_ids: list[str]) -> dict[str, User]: ...


class OverlapQuery(Protocol):
    async def first_overlapping(
        self,
        host_id: str,
        candidate: TimeRange,
        exclude_id: str | None = None,
    ) -> Event | Booking | None:
        """Return one record hosted by ``host_id`` overlapping ``candidate``."""
        ...


class EventStore(OverlapQuery, Protocol):
    async def get(self, event_id: str, host_id: str | None = None) -> Event | None: ...

    async def list_for_user(self, user_id: str) -> list[Event]: ...

    async def create(self, event: Event) -> Event: ...

    async def save(self, event: Event) -> Event: ...

    async def delete(self, event_id: str, host_id: str) -> Event | None: ...


class BookingStore(OverlapQuery, Protocol):
    async def get(self, booking_id: str, host_id: str | None = None) -> Booking | None: ...

    async def list_for_user(self, user_id: str, status: str | None = None) -> list[Booking]: ...

    async def list_by_event(self, event_id: str) -> list[Booking]: ...

    async def create(self, booking: Booking) -> Booking: ...

    async def save(self, booking: Booking) -> Booking: ...

    async def delete(self, booking_id: str, host_id: str) -> Booking | None: ...

    async def set_status_for_event(self, event_id: str, status: str) -> int:
        """Set the record status of every booking mirroring ``event_id``."""
        ...


class AvailabilityStore(Protocol):
    async def get(self, user_id: str) -> Availability | None: ...

    async def create(self, availability: Availability) -> Availability: ...

    async def save(self, availability: Availability) -> Availability: ...
