from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_api.models.events import InviteeInput
from booking_api.models.participants import (
    Participant,
    ParticipantView,
    dedupe_participants,
    new_record_id,
)
from booking_api.scheduling.time_range import TimeRange, ensure_aware

DEFAULT_BOOKING_STATUS = "Pending"
CANCELED_BOOKING_STATUS = "Canceled"


class Booking(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_record_id)
    host_id: str
    event_id: str | None = None
    title: str
    details: str | None = None
    date_label: str | None = None
    time_label: str | None = None
    start_time: datetime
    end_time: datetime
    # Aggregate meeting status. Free-form; each participant keeps its own RSVP.
    status: str = DEFAULT_BOOKING_STATUS
    participants: list[Participant] = []

    @field_validator("participants")
    @classmethod
    def unique_participants(cls, v: list[Participant]) -> list[Participant]:
        return dedupe_participants(v)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    def participant(self, user_id: str) -> Participant | None:
        return next((p for p in self.participants if p.user_id == user_id), None)


class BookingResponse(Booking):
    participants: list[ParticipantView] = []


class BookingCreate(BaseModel):
    title: str
    details: str | None = None
    date_label: str | None = None
    time_label: str | None = None
    start_time: datetime
    end_time: datetime
    invitee_ids: InviteeInput = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("title must be 1-200 characters")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "BookingCreate":
        TimeRange(self.start_time, self.end_time)
        return self

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)


class BookingUpdate(BaseModel):
    title: str | None = None
    details: str | None = None
    date_label: str | None = None
    time_label: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: str | None = None
    invitee_ids: InviteeInput = None

    @field_validator("start_time", "end_time")
    @classmethod
    def aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v


class StatusUpdate(BaseModel):
    # Checked by the booking manager so an unknown value is a 400, not a 422.
    status: str
