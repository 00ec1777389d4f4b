"""Booking status state machine.

    PENDING -> CONFIRMED -> COMPLETED
    PENDING | CONFIRMED -> CANCELLED

CANCELLED and COMPLETED are terminal. Rejected requests never get this far:
a booking only exists (in PENDING) once conflict and pricing checks passed.
Completion also needs the booking code the player received at creation.
This module only decides transitions; the caller persists them.
"""

import secrets
import string
from datetime import datetime

from app.core.errors import InvalidBookingCode, InvalidStateTransition
from app.models.booking import BookingStatus

INITIAL_STATUS = BookingStatus.PENDING

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

BOOKING_CODE_PREFIX = "BM"
BOOKING_CODE_ALPHABET = string.ascii_uppercase + string.digits


def new_booking_code(n: int = 6) -> str:
    """Generate a booking code such as ``BM7QK2XA``."""
    return BOOKING_CODE_PREFIX + "".join(secrets.choice(BOOKING_CODE_ALPHABET) for _ in range(n))


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


def transition(current: BookingStatus, target: BookingStatus) -> BookingStatus:
    if not can_transition(current, target):
        raise InvalidStateTransition(current.value, target.value)
    return target


def check_booking_code(booking, booking_code: str | None) -> None:
    if not booking_code or not secrets.compare_digest(booking_code.encode(), booking.booking_code.encode()):
        raise InvalidBookingCode("Invalid booking code.")


def apply(booking, target: BookingStatus, now: datetime) -> None:
    """Move booking to target, stamping cancelled_at on cancellation.

    Completion goes through complete(), which checks the booking code first.
    """
    booking.status = transition(booking.status, target)
    if target == BookingStatus.CANCELLED:
        booking.cancelled_at = now


def confirm(booking, now: datetime) -> None:
    apply(booking, BookingStatus.CONFIRMED, now)


def cancel(booking, now: datetime) -> None:
    apply(booking, BookingStatus.CANCELLED, now)


def complete(booking, booking_code: str | None, now: datetime) -> None:
    # Code before status: a wrong code is always invalid_booking_code.
    check_booking_code(booking, booking_code)
    apply(booking, BookingStatus.COMPLETED, now)
