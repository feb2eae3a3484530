import pytest
from pydantic import ValidationError

from booking_api.errors import TimeConflictError
from booking_api.models.availability import Availability, DayAvailability, Interval
from booking_api.models.bookings import BookingCreate
from booking_api.scheduling.availability import AvailabilityService, covers, weekday_label
from booking_api.scheduling.lifecycle import BookingManager
from booking_api.scheduling.locks import UserLocks
from booking_api.scheduling.time_range import TimeRange
from booking_api.tests.fakes import at


def _template(*days: DayAvailability) -> Availability:
    return Availability(user_id="u1", days=list(days))


class TestCovers:
    def test_missing_day_is_open(self):
        assert covers(_template(), TimeRange(at(3), at(4))) is True

    def test_unavailable_day(self):
        template = _template(DayAvailability(day="Mon", unavailable=True))
        assert covers(template, TimeRange(at(9), at(10))) is False

    def test_day_without_intervals_is_open(self):
        template = _template(DayAvailability(day="Mon"))
        assert covers(template, TimeRange(at(22), at(23))) is True

    def test_inside_interval(self):
        template = _template(
            DayAvailability(
                day="Mon",
                intervals=[Interval(start="09:00", end="12:00"), Interval(start="13:00", end="17:00")],
            )
        )
        assert covers(template, TimeRange(at(9), at(12))) is True
        assert covers(template, TimeRange(at(14), at(15, 30))) is True

    def test_straddling_intervals_is_not_covered(self):
        template = _template(
            DayAvailability(
                day="Mon",
                intervals=[Interval(start="09:00", end="12:00"), Interval(start="13:00", end="17:00")],
            )
        )
        assert covers(template, TimeRange(at(11, 30), at(13, 30))) is False
        assert covers(template, TimeRange(at(8, 30), at(9, 30))) is False

    def test_other_days_do_not_apply(self):
        template = _template(DayAvailability(day="Tue", unavailable=True))
        assert covers(template, TimeRange(at(9), at(10))) is True
        assert covers(template, TimeRange(at(9, day=3), at(10, day=3))) is False

    def test_multi_day_range_needs_open_days(self):
        overnight = TimeRange(at(22), at(2, day=3))
        assert covers(_template(DayAvailability(day="Mon"), DayAvailability(day="Tue")), overnight) is True
        limited = _template(
            DayAvailability(day="Mon"),
            DayAvailability(day="Tue", intervals=[Interval(start="00:00", end="09:00")]),
        )
        assert covers(limited, overnight) is False

    def test_range_ending_at_midnight_is_single_day(self):
        template = _template(DayAvailability(day="Mon"), DayAvailability(day="Tue", unavailable=True))
        assert covers(template, TimeRange(at(22), at(0, day=3))) is True

    def test_range_ending_at_midnight_fits_interval_to_end_of_day(self):
        evening = _template(DayAvailability(day="Mon", intervals=[Interval(start="18:00", end="23:59")]))
        assert covers(evening, TimeRange(at(22), at(0, day=3))) is True

        early = _template(DayAvailability(day="Mon", intervals=[Interval(start="18:00", end="23:00")]))
        assert covers(early, TimeRange(at(22), at(0, day=3))) is False


def test_weekday_label():
    assert weekday_label(at(9).date()) == "Mon"
    assert weekday_label(at(9, day=1).date()) == "Sun"
    assert weekday_label(at(9, day=7).date()) == "Sat"


class TestIntervalValidation:
    @pytest.mark.parametrize("start, end", [("9:00", "10:00"), ("24:00", "23:00"), ("10:00", "09:00"), ("10:00", "10:00")])
    def test_rejects(self, start, end):
        with pytest.raises(ValidationError):
            Interval(start=start, end=end)


class TestAvailabilityService:
    @pytest.mark.asyncio
    async def test_default_template_created_on_first_read(self, availability_store):
        service = AvailabilityService(availability_store)

        availability = await service.get_or_create("u1")

        assert [d.day for d in availability.days] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        assert all(not d.unavailable and d.intervals == [] for d in availability.days)
        assert "u1" in availability_store.records

    @pytest.mark.asyncio
    async def test_replace_overwrites_days(self, availability_store):
        service = AvailabilityService(availability_store)
        await service.get_or_create("u1")

        days = [DayAvailability(day="Sat", unavailable=True)]
        updated = await service.replace("u1", days)

        assert updated.days == days
        assert availability_store.records["u1"].days == days

    @pytest.mark.asyncio
    async def test_replace_creates_when_missing(self, availability_store):
        service = AvailabilityService(availability_store)
        updated = await service.replace("u2", None)
        assert updated.days == []
        assert availability_store.records["u2"].days == []


class TestEnforcement:
    @pytest.mark.asyncio
    async def test_booking_outside_availability_rejected(self, booking_store, availability_store, directory, host):
        service = AvailabilityService(availability_store)
        await service.replace(host.id, [DayAvailability(day="Mon", intervals=[Interval(start="09:00", end="17:00")])])
        manager = BookingManager(booking_store, directory, UserLocks(), availability=service)

        with pytest.raises(TimeConflictError) as exc_info:
            await manager.create(host, BookingCreate(title="Late", start_time=at(18), end_time=at(19)))

        assert exc_info.value.detail == "Time is outside of stated availability"
        assert booking_store.records == {}

        booking = await manager.create(host, BookingCreate(title="Early", start_time=at(9), end_time=at(10)))
        assert booking.id in booking_store.records

    @pytest.mark.asyncio
    async def test_not_enforced_by_default(self, booking_manager, availability_store, host):
        await AvailabilityService(availability_store).replace(host.id, [DayAvailability(day="Mon", unavailable=True)])
        booking = await booking_manager.create(host, BookingCreate(title="Any", start_time=at(18), end_time=at(19)))
        assert booking.title == "Any"
