from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_api.models.participants import (
    Participant,
    ParticipantView,
    dedupe_participants,
    new_record_id,
)
from booking_api.scheduling.time_range import TimeRange, ensure_aware

InviteeInput = str | list[str] | None


class Event(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_record_id)
    host_id: str
    host_name: str = ""
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    password: str | None = None
    banner_color: str = "#ffffff"
    title_color: str = "#000000"
    link_color: str = "#0000ff"
    banner_url: str | None = None
    meeting_link: str | None = None
    participants: list[Participant] = []
    is_active: bool = True

    @field_validator("participants")
    @classmethod
    def unique_participants(cls, v: list[Participant]) -> list[Participant]:
        return dedupe_participants(v)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)


class EventResponse(Event):
    participants: list[ParticipantView] = []


def _check_title(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if len(v) > 200:
        raise ValueError("title must be at most 200 characters")
    return v


class EventCreate(BaseModel):
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    password: str | None = None
    invitee_ids: InviteeInput = None
    host_name: str | None = None
    banner_color: str | None = None
    title_color: str | None = None
    link_color: str | None = None
    banner_url: str | None = None
    meeting_link: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = _check_title(v)
        if not v:
            raise ValueError("title must not be empty")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "EventCreate":
        TimeRange(self.start_time, self.end_time)
        return self

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)


class EventUpdate(BaseModel):
    """Partial update. Empty values leave the stored field unchanged."""

    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    password: str | None = None
    invitee_ids: InviteeInput = None
    host_name: str | None = None
    banner_color: str | None = None
    title_color: str | None = None
    link_color: str | None = None
    banner_url: str | None = None
    meeting_link: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return _check_title(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else v


class MessageResponse(BaseModel):
    message: str
