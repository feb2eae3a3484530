import logging

import pytest

from booking_api.errors import NotFoundError, TimeConflictError
from booking_api.models.bookings import BookingCreate
from booking_api.models.events import EventCreate, EventUpdate
from booking_api.models.participants import ParticipantStatus
from booking_api.scheduling.lifecycle import EventManager
from booking_api.scheduling.locks import UserLocks
from booking_api.tests.fakes import at


def _create(start, end, **kwargs) -> EventCreate:
    return EventCreate(title=kwargs.pop("title", "Demo day"), start_time=start, end_time=end, **kwargs)


def _mirrors(booking_store, event_id):
    return [b for b in booking_store.records.values() if b.event_id == event_id]


class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_creates_event_and_mirrored_booking(self, event_manager, event_store, booking_store, host, guest):
        event = await event_manager.create(host, _create(at(13), at(14), invitee_ids=f"{guest.email},{host.email}"))

        assert event.id in event_store.records
        assert [(p.user_id, p.status) for p in event.participants] == [
            (host.id, ParticipantStatus.ACCEPTED),
            (guest.id, ParticipantStatus.PENDING),
        ]

        mirrors = _mirrors(booking_store, event.id)
        assert len(mirrors) == 1
        mirror = mirrors[0]
        assert mirror.host_id == host.id
        assert mirror.title == "Demo day"
        assert mirror.status == "Pending"
        assert mirror.date_label == "Mon, Mar 02, 2026"
        assert mirror.time_label == "13:00 - 14:00"
        assert [p.user_id for p in mirror.participants] == [host.id, guest.id]

    @pytest.mark.asyncio
    async def test_defaults(self, event_manager, host):
        event = await event_manager.create(host, _create(at(13), at(14)))

        assert event.host_name == "Hana Host"
        assert event.is_active is True
        assert event.banner_color == "#ffffff"
        assert event.title_color == "#000000"
        assert event.link_color == "#0000ff"

    @pytest.mark.asyncio
    async def test_explicit_theme_and_host_name(self, event_manager, host):
        event = await event_manager.create(
            host, _create(at(13), at(14), host_name="Team Hana", banner_color="#123456")
        )
        assert event.host_name == "Team Hana"
        assert event.banner_color == "#123456"
        assert event.title_color == "#000000"

    @pytest.mark.asyncio
    async def test_overlapping_event_rejected(self, event_manager, event_store, booking_store, host):
        await event_manager.create(host, _create(at(13), at(14)))

        with pytest.raises(TimeConflictError):
            await event_manager.create(host, _create(at(13, 30), at(15)))

        assert len(event_store.records) == 1
        assert len(booking_store.records) == 1

    @pytest.mark.asyncio
    async def test_event_conflicts_ignore_bookings(self, event_manager, booking_manager, host):
        await booking_manager.create(host, BookingCreate(title="1:1", start_time=at(13), end_time=at(14)))
        event = await event_manager.create(host, _create(at(13), at(14)))
        assert event.start_time == at(13)

    @pytest.mark.asyncio
    async def test_mirror_failure_keeps_event(self, event_manager, event_store, booking_store, host, caplog):
        booking_store.fail_creates = True

        with caplog.at_level(logging.ERROR):
            event = await event_manager.create(host, _create(at(13), at(14)))

        assert event.id in event_store.records
        assert booking_store.records == {}
        assert "Failed to create mirrored booking" in caplog.text

    @pytest.mark.asyncio
    async def test_mirroring_can_be_disabled(self, event_store, booking_store, directory, host):
        manager = EventManager(event_store, booking_store, directory, UserLocks(), mirror_bookings=False)
        await manager.create(host, _create(at(13), at(14)))
        assert booking_store.records == {}


class TestUpdateEvent:
    @pytest.mark.asyncio
    async def test_update_syncs_mirror(self, event_manager, booking_store, host):
        event = await event_manager.create(host, _create(at(13), at(14)))

        updated = await event_manager.update(
            host, event.id, EventUpdate(title="Launch", start_time=at(15), end_time=at(16))
        )

        assert updated.title == "Launch"
        mirror = _mirrors(booking_store, event.id)[0]
        assert mirror.title == "Launch"
        assert mirror.start_time == at(15)
        assert mirror.time_label == "15:00 - 16:00"

    @pytest.mark.asyncio
    async def test_rsvps_on_mirror_survive_non_invitee_update(self, event_manager, booking_manager, booking_store, host, guest):
        event = await event_manager.create(host, _create(at(13), at(14), invitee_ids=[guest.id]))
        mirror = _mirrors(booking_store, event.id)[0]
        await booking_manager.set_participant_status(guest, mirror.id, "Accepted")

        await event_manager.update(host, event.id, EventUpdate(description="Bring slides"))

        mirror = booking_store.records[mirror.id]
        assert mirror.details == "Bring slides"
        assert mirror.participant(guest.id).status == ParticipantStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_invitee_update_replaces_mirror_participants(self, event_manager, booking_store, host, guest, other_guest):
        event = await event_manager.create(host, _create(at(13), at(14), invitee_ids=[guest.id]))

        updated = await event_manager.update(host, event.id, EventUpdate(invitee_ids=[other_guest.id]))

        assert [p.user_id for p in updated.participants] == [host.id, other_guest.id]
        mirror = _mirrors(booking_store, event.id)[0]
        assert [p.user_id for p in mirror.participants] == [host.id, other_guest.id]

    @pytest.mark.asyncio
    async def test_empty_fields_mean_no_change(self, event_manager, host):
        event = await event_manager.create(host, _create(at(13), at(14), password="s3cret"))

        updated = await event_manager.update(host, event.id, EventUpdate(title="", password=""))

        assert updated.title == "Demo day"
        assert updated.password == "s3cret"

    @pytest.mark.asyncio
    async def test_update_into_other_event_conflicts(self, event_manager, host):
        await event_manager.create(host, _create(at(9), at(10)))
        second = await event_manager.create(host, _create(at(13), at(14)))

        with pytest.raises(TimeConflictError):
            await event_manager.update(host, second.id, EventUpdate(start_time=at(9, 30), end_time=at(10, 30)))

    @pytest.mark.asyncio
    async def test_non_host_update_is_not_found(self, event_manager, host, guest):
        event = await event_manager.create(host, _create(at(13), at(14), invitee_ids=[guest.id]))
        with pytest.raises(NotFoundError):
            await event_manager.update(guest, event.id, EventUpdate(title="Hijack"))


class TestDeleteEvent:
    @pytest.mark.asyncio
    async def test_delete_cancels_mirror(self, event_manager, event_store, booking_store, host):
        event = await event_manager.create(host, _create(at(13), at(14)))

        await event_manager.delete(host, event.id)

        assert event.id not in event_store.records
        mirrors = _mirrors(booking_store, event.id)
        assert len(mirrors) == 1
        assert mirrors[0].status == "Canceled"

    @pytest.mark.asyncio
    async def test_freed_slot_can_be_reused(self, event_manager, host):
        event = await event_manager.create(host, _create(at(13), at(14)))
        await event_manager.delete(host, event.id)
        again = await event_manager.create(host, _create(at(13), at(14)))
        assert again.id != event.id

    @pytest.mark.asyncio
    async def test_canceled_mirror_frees_booking_slot(self, event_manager, booking_manager, host):
        event = await event_manager.create(host, _create(at(13), at(14)))
        await event_manager.delete(host, event.id)

        booking = await booking_manager.create(host, BookingCreate(title="1:1", start_time=at(13), end_time=at(14)))

        assert booking.event_id is None

    @pytest.mark.asyncio
    async def test_non_host_delete_is_not_found(self, event_manager, event_store, host, guest):
        event = await event_manager.create(host, _create(at(13), at(14)))
        with pytest.raises(NotFoundError):
            await event_manager.delete(guest, event.id)
        assert event.id in event_store.records


class TestToggleEvent:
    @pytest.mark.asyncio
    async def test_toggle_flips_active(self, event_manager, host):
        event = await event_manager.create(host, _create(at(13), at(14)))

        first = await event_manager.toggle_active(host, event.id)
        second = await event_manager.toggle_active(host, event.id)

        assert first.is_active is False
        assert second.is_active is True

    @pytest.mark.asyncio
    async def test_toggle_unknown_event(self, event_manager, host):
        with pytest.raises(NotFoundError):
            await event_manager.toggle_active(host, "missing")


class TestListEvents:
    @pytest.mark.asyncio
    async def test_invited_user_sees_event(self, event_manager, host, guest, stranger):
        event = await event_manager.create(host, _create(at(13), at(14), invitee_ids=[guest.id]))

        assert [e.id for e in await event_manager.list_for_user(guest.id)] == [event.id]
        assert [e.id for e in await event_manager.list_for_user(host.id)] == [event.id]
        assert await event_manager.list_for_user(stranger.id) == []
