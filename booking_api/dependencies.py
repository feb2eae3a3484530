"""Dependency injection for FastAPI endpoints.

Stores, the user directory and the schedule locks are created during
lifespan and published on ``booking_api.state``. These dependencies hand
them to the scheduling core so no controller touches the globals directly.

Usage in controllers:
    from booking_api.dependencies import Bookings, CurrentUser

    @router.get("/bookings")
    async def list_bookings(user: CurrentUser, manager: Bookings):
        return await manager.list_for_user(user.id)
"""

from typing import Annotated

from fastapi import Depends, Header

from booking_api import state
from booking_api.config import get_settings
from booking_api.errors import ServiceUnavailableError, UnauthorizedError
from booking_api.models.users import User
from booking_api.scheduling.availability import AvailabilityService
from booking_api.scheduling.lifecycle import BookingManager, EventManager
from booking_api.scheduling.locks import UserLocks
from booking_api.scheduling.ports import AvailabilityStore, BookingStore, EventStore, UserDirectory


def _database_unavailable() -> ServiceUnavailableError:
    return ServiceUnavailableError(detail="Database not connected")


def get_event_store() -> EventStore:
    """Get the event store.

    Raises:
        ServiceUnavailableError: If the database is not connected.
    """
    if state.event_store is None:
        raise _database_unavailable()
    return state.event_store


def get_booking_store() -> BookingStore:
    if state.booking_store is None:
        raise _database_unavailable()
    return state.booking_store


def get_availability_store() -> AvailabilityStore:
    if state.availability_store is None:
        raise _database_unavailable()
    return state.availability_store


def get_user_directory() -> UserDirectory:
    if state.user_directory is None:
        raise _database_unavailable()
    return state.user_directory


def get_user_locks() -> UserLocks:
    """Get the per-user schedule locks, falling back to in-process locks."""
    if state.user_locks is None:
        state.user_locks = UserLocks()
    return state.user_locks


async def get_current_user(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the acting user from the ``X-User-Id`` header.

    Authentication itself happens upstream; this only looks the id up.
    """
    if not x_user_id:
        raise UnauthorizedError(detail="Missing X-User-Id header")
    user = await directory.find_by_id(x_user_id)
    if user is None:
        raise UnauthorizedError(detail="Unknown user")
    return user


def get_availability_service(
    store: Annotated[AvailabilityStore, Depends(get_availability_store)],
) -> AvailabilityService:
    return AvailabilityService(store)


def _enforced_availability(service: AvailabilityService) -> AvailabilityService | None:
    return service if get_settings().scheduling.enforce_availability else None


def get_booking_manager(
    store: Annotated[BookingStore, Depends(get_booking_store)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    locks: Annotated[UserLocks, Depends(get_user_locks)],
    availability: Annotated[AvailabilityService, Depends(get_availability_service)],
) -> BookingManager:
    return BookingManager(store, directory, locks, _enforced_availability(availability))


def get_event_manager(
    store: Annotated[EventStore, Depends(get_event_store)],
    bookings: Annotated[BookingStore, Depends(get_booking_store)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    locks: Annotated[UserLocks, Depends(get_user_locks)],
    availability: Annotated[AvailabilityService, Depends(get_availability_service)],
) -> EventManager:
    return EventManager(
        store,
        bookings,
        directory,
        locks,
        _enforced_availability(availability),
        mirror_bookings=get_settings().features.mirror_bookings,
    )


CurrentUser = Annotated[User, Depends(get_current_user)]
Directory = Annotated[UserDirectory, Depends(get_user_directory)]
Bookings = Annotated[BookingManager, Depends(get_booking_manager)]
Events = Annotated[EventManager, Depends(get_event_manager)]
AvailabilityDep = Annotated[AvailabilityService, Depends(get_availability_service)]
