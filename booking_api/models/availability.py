import re

from pydantic import BaseModel, field_validator, model_validator

TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")

# Order matches datetime.isoweekday() % 7.
WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class Interval(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        if not TIME_RE.match(v):
            raise ValueError(f"invalid time format: {v}")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "Interval":
        if self.start >= self.end:
            raise ValueError("interval start must be before end")
        return self


class DayAvailability(BaseModel):
    day: str
    unavailable: bool = False
    intervals: list[Interval] = []


class Availability(BaseModel):
    user_id: str
    days: list[DayAvailability]

    def day(self, label: str) -> DayAvailability | None:
        return next((d for d in self.days if d.day == label), None)


class AvailabilityUpdate(BaseModel):
    days: list[DayAvailability] = []


def default_days() -> list[DayAvailability]:
    return [DayAvailability(day=label) for label in WEEKDAYS]
