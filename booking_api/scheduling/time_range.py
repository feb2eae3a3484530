"""Time ranges and the overlap rule used for conflict detection."""

from dataclasses import dataclass
from datetime import UTC, datetime


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC. No other conversion is done."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval ``[start, end)`` between two instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))
        if self.start >= self.end:
            raise ValueError(
                f"start must be before end (start={self.start.isoformat()}, end={self.end.isoformat()})"
            )

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self, other)

    def date_label(self) -> str:
        return self.start.strftime("%a, %b %d, %Y")

    def time_label(self) -> str:
        return f"{self.start:%H:%M} - {self.end:%H:%M}"


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """Strict overlap: ranges that only touch at an endpoint do not conflict."""
    return a.start < b.end and b.start < a.end
