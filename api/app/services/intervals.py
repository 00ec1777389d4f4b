"""Half-open time intervals.

Pure calculation module: no database access, no FastAPI imports.
A TimeInterval is either time-of-day ([06:00, 17:00) on any day, no offset) or
absolute (two timezone-aware datetimes). The end is always excluded, so a booking
ending at 10:00 and one starting at 10:00 do not overlap.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from app.core.errors import InvalidInterval

SECONDS_PER_HOUR = Decimal(3600)

# Any fixed date works for time-of-day arithmetic; intervals never cross midnight.
_ANCHOR = date(2000, 1, 1)


def _fmt(point: time | datetime) -> str:
    if isinstance(point, datetime):
        return point.isoformat()
    return point.strftime("%H:%M")


@dataclass(frozen=True)
class TimeInterval:
    start: time | datetime
    end: time | datetime

    def __post_init__(self):
        if isinstance(self.start, datetime) != isinstance(self.end, datetime):
            raise InvalidInterval("Interval endpoints must both be times of day or both be timestamps.")
        if isinstance(self.start, datetime):
            if self.start.tzinfo is None or self.end.tzinfo is None:
                raise InvalidInterval("Timestamps must carry a timezone.")
        elif self.start.tzinfo is not None or self.end.tzinfo is not None:
            # Tiers and slots are venue wall-clock times; an offset has no meaning there.
            raise InvalidInterval(
                f"Times of day must not carry a UTC offset ({self.start.isoformat()}-{self.end.isoformat()})."
            )
        if self.start >= self.end:
            raise InvalidInterval(f"Start {_fmt(self.start)} must be before end {_fmt(self.end)}.")

    @property
    def is_time_of_day(self) -> bool:
        return not isinstance(self.start, datetime)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, point: time | datetime) -> bool:
        return self.start <= point < self.end

    def intersection(self, other: "TimeInterval") -> "TimeInterval | None":
        """The overlapping part of two intervals, or None when they don't overlap."""
        if not self.overlaps(other):
            return None
        return TimeInterval(max(self.start, other.start), min(self.end, other.end))

    def duration_seconds(self) -> int:
        if self.is_time_of_day:
            delta = datetime.combine(_ANCHOR, self.end) - datetime.combine(_ANCHOR, self.start)
        else:
            delta = self.end - self.start
        return int(delta.total_seconds())

    def duration_hours(self) -> Decimal:
        return Decimal(self.duration_seconds()) / SECONDS_PER_HOUR

    def __str__(self) -> str:
        return f"{_fmt(self.start)}-{_fmt(self.end)}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    return a.overlaps(b)


def contains(a: TimeInterval, point: time | datetime) -> bool:
    return a.contains(point)


def duration_hours(a: TimeInterval) -> Decimal:
    return a.duration_hours()
