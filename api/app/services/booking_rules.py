"""Booking rules enforcement: request validation and conflict detection.

All booking validation logic lives here, separate from the route handlers and
from persistence. Every function takes its full input as arguments (existing
bookings, the candidate range, the evaluation instant) so the same checks can
be re-run on freshly read data inside the booking transaction.

"Which bookings count" is defined once: same field, status in ACTIVE_STATUSES.
"""

from collections.abc import Iterable
from datetime import datetime, time, tzinfo

from app.core.errors import BookingConflict, OutsideOperatingHours, PastStartTime
from app.models.booking import ACTIVE_STATUSES
from app.services.intervals import TimeInterval


def parse_hhmm(s: str) -> time:
    h, m = map(int, s.split(":"))
    return time(h, m)


def ensure_aware(moment: datetime, tz: tzinfo) -> datetime:
    """Treat naive datetimes as venue-local wall clock time."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


def is_active(booking) -> bool:
    return booking.status in ACTIVE_STATUSES


def active_for_field(bookings: Iterable, field_id: int) -> list:
    """The bookings that block new reservations on field_id."""
    return [b for b in bookings if b.field_id == field_id and is_active(b)]


def booking_interval(booking) -> TimeInterval:
    return TimeInterval(booking.start_time, booking.end_time)


def find_conflict(bookings: Iterable, field_id: int, candidate: TimeInterval):
    """Return the first active booking on field_id overlapping candidate, or None.

    Half-open overlap catches containment in both directions and partial
    overlap at either end; back-to-back bookings sharing an endpoint pass.
    """
    for booking in active_for_field(bookings, field_id):
        if booking_interval(booking).overlaps(candidate):
            return booking
    return None


def has_conflict(bookings: Iterable, field_id: int, candidate: TimeInterval) -> bool:
    return find_conflict(bookings, field_id, candidate) is not None


def check_field_conflict(bookings: Iterable, field_id: int, candidate: TimeInterval, tz: tzinfo) -> None:
    """Raise BookingConflict naming the clashing booking's local times."""
    conflict = find_conflict(bookings, field_id, candidate)
    if conflict is not None:
        start = conflict.start_time.astimezone(tz)
        end = conflict.end_time.astimezone(tz)
        raise BookingConflict(
            f"Field already booked from {start.strftime('%H:%M')} to {end.strftime('%H:%M')} "
            f"on {start.date()} (booking #{conflict.id})."
        )


def assert_bookable(start: datetime, end: datetime, now: datetime) -> TimeInterval:
    """Validate a candidate range against the evaluation instant.

    Raises InvalidRange when start >= end and PastStartTime when the start is
    not strictly after now. A naive now is read in the candidate's zone.
    Returns the validated interval.
    """
    candidate = TimeInterval(start, end)
    if candidate.start <= ensure_aware(now, candidate.start.tzinfo):
        raise PastStartTime("Cannot book a slot that has already started.")
    return candidate


def check_within_operating_hours(candidate: TimeInterval, open_time: time, close_time: time, tz: tzinfo) -> None:
    """A booking must sit inside the venue's operating window on its local day."""
    local_start = candidate.start.astimezone(tz)
    local_end = candidate.end.astimezone(tz)
    if (
        local_start.date() != local_end.date()
        or local_start.time() < open_time
        or local_end.time() > close_time
    ):
        raise OutsideOperatingHours(
            f"Bookings must be between {open_time.strftime('%H:%M')} and {close_time.strftime('%H:%M')}."
        )
