"""Lifecycle of bookings and events.

Managers compose the participant normalizer and the conflict detector and
enforce who may change what:

- Host-scoped operations load records by ``(id, host_id)``. A record that
  exists but belongs to someone else is reported exactly like a missing one.
- Conflict checks and the writes they guard run under the host's lock.
- Partial updates only apply non-empty values; an empty string or list means
  "no change", never "clear". Existing clients rely on this.
- Invitee edits replace the participant list wholesale.

An event is the canonical owner of its meeting details. Its mirrored booking
(``event_id`` set) is refreshed whenever the event changes and is canceled,
not deleted, when the event goes away. RSVPs given through the booking stay
on the booking.
"""

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from booking_api.errors import (
    BadRequestError,
    ForbiddenError,
    InvalidStatusError,
    NotFoundError,
    TimeConflictError,
)
from booking_api.models.bookings import (
    CANCELED_BOOKING_STATUS,
    DEFAULT_BOOKING_STATUS,
    Booking,
    BookingCreate,
    BookingUpdate,
)
from booking_api.models.events import Event, EventCreate, EventUpdate
from booking_api.models.participants import RSVP_STATUSES, ParticipantStatus
from booking_api.models.users import User
from booking_api.scheduling.availability import AvailabilityService
from booking_api.scheduling.conflicts import ConflictDetector
from booking_api.scheduling.locks import UserLocks
from booking_api.scheduling.participants import build_participants
from booking_api.scheduling.ports import BookingStore, EventStore, OverlapQuery, UserDirectory
from booking_api.scheduling.time_range import TimeRange

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

THEME_FIELDS = ("banner_color", "title_color", "link_color", "banner_url")


def _merged_range(record: Event | Booking, start: Any, end: Any) -> TimeRange | None:
    """Range after an update, or None when the update leaves it alone."""
    if not start and not end:
        return None
    try:
        return TimeRange(start or record.start_time, end or record.end_time)
    except ValueError as e:
        raise BadRequestError(detail=str(e)) from None


def _apply_present(record: BaseModel, payload: BaseModel, fields: Sequence[str]) -> None:
    for name in fields:
        value = getattr(payload, name)
        if value:
            setattr(record, name, value)


async def populate_participants(
    records: Sequence[Event | Booking],
    directory: UserDirectory,
    response_model: type[R],
) -> list[R]:
    """Attach user display fields to every participant entry."""
    user_ids = sorted({p.user_id for r in records for p in r.participants})
    users = await directory.find_many(user_ids) if user_ids else {}
    populated = []
    for record in records:
        data = record.model_dump()
        data["participants"] = [
            {**p.model_dump(), "user": users.get(p.user_id)} for p in record.participants
        ]
        populated.append(response_model.model_validate(data))
    return populated


class _Manager:
    kind = "record"

    def __init__(
        self,
        store: OverlapQuery,
        directory: UserDirectory,
        locks: UserLocks | None = None,
        availability: AvailabilityService | None = None,
    ) -> None:
        self._directory = directory
        self._locks = locks or UserLocks()
        # Only set when availability is enforced.
        self._availability = availability
        self._conflicts = ConflictDetector(store, self.kind)

    async def _check_slot(
        self,
        host_id: str,
        candidate: TimeRange,
        exclude_id: str | None = None,
    ) -> None:
        if await self._conflicts.has_conflict(host_id, candidate, exclude_id=exclude_id):
            raise TimeConflictError(resource_type=self.kind)
        if self._availability is not None and not await self._availability.covers(host_id, candidate):
            logger.info("Rejecting %s for user=%s: outside stated availability", self.kind, host_id)
            raise TimeConflictError(
                detail="Time is outside of stated availability",
                resource_type=self.kind,
            )

    def _not_found(self, record_id: str) -> NotFoundError:
        return NotFoundError(
            detail=f"{self.kind.capitalize()} not found",
            resource_type=self.kind,
            resource_id=record_id,
        )


class BookingManager(_Manager):
    kind = "booking"

    def __init__(
        self,
        store: BookingStore,
        directory: UserDirectory,
        locks: UserLocks | None = None,
        availability: AvailabilityService | None = None,
    ) -> None:
        super().__init__(store, directory, locks, availability)
        self._store = store

    async def list_for_user(self, user_id: str, status: str | None = None) -> list[Booking]:
        """Bookings the user hosts or is invited to, earliest first."""
        return await self._store.list_for_user(user_id, status=status)

    async def create(self, host: User, payload: BookingCreate) -> Booking:
        candidate = payload.time_range
        async with self._locks.hold(host.id):
            await self._check_slot(host.id, candidate)
            participants = await build_participants(payload.invitee_ids, host.id, self._directory)
            booking = await self._store.create(
                Booking(
                    host_id=host.id,
                    title=payload.title,
                    details=payload.details,
                    date_label=payload.date_label or candidate.date_label(),
                    time_label=payload.time_label or candidate.time_label(),
                    start_time=candidate.start,
                    end_time=candidate.end,
                    status=DEFAULT_BOOKING_STATUS,
                    participants=participants,
                )
            )
        logger.info(
            "Created booking id=%s host=%s participants=%d",
            booking.id,
            host.id,
            len(booking.participants),
        )
        return booking

    async def update(self, host: User, booking_id: str, payload: BookingUpdate) -> Booking:
        async with self._locks.hold(host.id):
            booking = await self._store.get(booking_id, host_id=host.id)
            if booking is None:
                raise self._not_found(booking_id)

            candidate = _merged_range(booking, payload.start_time, payload.end_time)
            if candidate is not None:
                await self._check_slot(host.id, candidate, exclude_id=booking.id)
                booking.start_time = candidate.start
                booking.end_time = candidate.end

            _apply_present(booking, payload, ("title", "details", "date_label", "time_label", "status"))
            if payload.invitee_ids:
                booking.participants = await build_participants(
                    payload.invitee_ids, host.id, self._directory
                )
            booking = await self._store.save(booking)
        logger.info("Updated booking id=%s host=%s", booking.id, host.id)
        return booking

    async def delete(self, host: User, booking_id: str) -> Booking:
        booking = await self._store.delete(booking_id, host.id)
        if booking is None:
            raise self._not_found(booking_id)
        logger.info("Deleted booking id=%s host=%s", booking_id, host.id)
        return booking

    async def set_participant_status(self, actor: User, booking_id: str, status: str) -> Booking:
        """Record the actor's RSVP on a booking.

        Any listed participant may accept or reject for themselves. The host
        goes through the same path for their own entry and, in addition, sets
        the booking's aggregate ``status`` to the same value.
        """
        if status not in RSVP_STATUSES:
            raise InvalidStatusError(detail=f"Invalid status: {status}", allowed=sorted(RSVP_STATUSES))

        booking = await self._store.get(booking_id)
        if booking is None:
            raise self._not_found(booking_id)

        is_host = booking.host_id == actor.id
        is_participant = booking.participant(actor.id) is not None
        if not is_host and not is_participant:
            logger.warning("User %s may not change status of booking %s", actor.id, booking_id)
            raise ForbiddenError(resource_type=self.kind, resource_id=booking_id)

        if is_host:
            booking.status = status
        booking.participants = [
            p.model_copy(update={"status": ParticipantStatus(status)}) if p.user_id == actor.id else p
            for p in booking.participants
        ]
        booking = await self._store.save(booking)
        logger.info(
            "Booking id=%s user=%s status=%s host=%s",
            booking.id,
            actor.id,
            status,
            is_host,
        )
        return booking


class EventManager(_Manager):
    kind = "event"

    def __init__(
        self,
        store: EventStore,
        bookings: BookingStore,
        directory: UserDirectory,
        locks: UserLocks | None = None,
        availability: AvailabilityService | None = None,
        mirror_bookings: bool = True,
    ) -> None:
        super().__init__(store, directory, locks, availability)
        self._store = store
        self._bookings = bookings
        self._mirror_bookings = mirror_bookings

    async def list_for_user(self, user_id: str) -> list[Event]:
        return await self._store.list_for_user(user_id)

    async def create(self, host: User, payload: EventCreate) -> Event:
        candidate = payload.time_range
        async with self._locks.hold(host.id):
            await self._check_slot(host.id, candidate)
            participants = await build_participants(
                payload.invitee_ids, host.id, self._directory, host_email=host.email
            )
            theme = {name: getattr(payload, name) for name in THEME_FIELDS if getattr(payload, name)}
            event = await self._store.create(
                Event(
                    host_id=host.id,
                    host_name=payload.host_name or host.display_name,
                    title=payload.title,
                    description=payload.description,
                    start_time=candidate.start,
                    end_time=candidate.end,
                    password=payload.password,
                    meeting_link=payload.meeting_link,
                    participants=participants,
                    **theme,
                )
            )
        logger.info(
            "Created event id=%s host=%s participants=%d",
            event.id,
            host.id,
            len(event.participants),
        )
        if self._mirror_bookings:
            await self._create_mirror(event)
        return event

    async def update(self, host: User, event_id: str, payload: EventUpdate) -> Event:
        async with self._locks.hold(host.id):
            event = await self._store.get(event_id, host_id=host.id)
            if event is None:
                raise self._not_found(event_id)

            candidate = _merged_range(event, payload.start_time, payload.end_time)
            if candidate is not None:
                await self._check_slot(host.id, candidate, exclude_id=event.id)
                event.start_time = candidate.start
                event.end_time = candidate.end

            _apply_present(
                event,
                payload,
                ("title", "description", "password", "host_name", "meeting_link", *THEME_FIELDS),
            )
            invitees_changed = bool(payload.invitee_ids)
            if invitees_changed:
                event.participants = await build_participants(
                    payload.invitee_ids, host.id, self._directory, host_email=host.email
                )
            event = await self._store.save(event)
        logger.info("Updated event id=%s host=%s", event.id, host.id)
        if self._mirror_bookings:
            await self._sync_mirrors(event, include_participants=invitees_changed)
        return event

    async def delete(self, host: User, event_id: str) -> Event:
        event = await self._store.delete(event_id, host.id)
        if event is None:
            raise self._not_found(event_id)
        canceled = await self._bookings.set_status_for_event(event.id, CANCELED_BOOKING_STATUS)
        logger.info("Deleted event id=%s host=%s canceled_bookings=%d", event.id, host.id, canceled)
        return event

    async def toggle_active(self, host: User, event_id: str) -> Event:
        event = await self._store.get(event_id, host_id=host.id)
        if event is None:
            raise self._not_found(event_id)
        event.is_active = not event.is_active
        event = await self._store.save(event)
        logger.info("Event id=%s active=%s", event.id, event.is_active)
        return event

    @staticmethod
    def _mirror_fields(event: Event) -> dict[str, Any]:
        meeting = event.time_range
        return {
            "title": event.title,
            "details": event.description,
            "date_label": meeting.date_label(),
            "time_label": meeting.time_label(),
            "start_time": event.start_time,
            "end_time": event.end_time,
        }

    async def _create_mirror(self, event: Event) -> None:
        # Best effort: the event stands even if its booking view cannot be written.
        try:
            booking = await self._bookings.create(
                Booking(
                    host_id=event.host_id,
                    event_id=event.id,
                    participants=[p.model_copy() for p in event.participants],
                    **self._mirror_fields(event),
                )
            )
        except Exception:
            logger.exception("Failed to create mirrored booking for event=%s", event.id)
            return
        logger.debug("Mirrored event=%s as booking=%s", event.id, booking.id)

    async def _sync_mirrors(self, event: Event, include_participants: bool) -> None:
        try:
            mirrors = await self._bookings.list_by_event(event.id)
            for booking in mirrors:
                for name, value in self._mirror_fields(event).items():
                    setattr(booking, name, value)
                if include_participants:
                    booking.participants = [p.model_copy() for p in event.participants]
                await self._bookings.save(booking)
        except Exception:
            logger.exception("Failed to sync mirrored bookings for event=%s", event.id)
            return
        logger.debug("Synced %d mirrored booking(s) for event=%s", len(mirrors), event.id)
