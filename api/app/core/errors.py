"""Booking error taxonomy.

Every caller-correctable failure of the scheduling core is a BookingError with
a stable ``rule`` key, a human message and the HTTP status the request layer
should answer with. None of these are transient, so nothing retries them.
"""


class BookingError(Exception):
    """Base class for all booking/pricing failures surfaced to clients."""

    rule = "booking_error"
    http_status = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def as_detail(self) -> dict:
        return {"rule": self.rule, "message": self.message}


class InvalidRange(BookingError):
    rule = "invalid_range"
    http_status = 422


class InvalidInterval(InvalidRange):
    """Raised by TimeInterval construction when start >= end."""


class PastStartTime(BookingError):
    rule = "past_start_time"
    http_status = 422


class FieldNotFound(BookingError):
    rule = "field_not_found"
    http_status = 404

    def __init__(self, field_id: int):
        self.field_id = field_id
        super().__init__(f"Field {field_id} not found or not bookable.")


class BookingNotFound(BookingError):
    rule = "booking_not_found"
    http_status = 404

    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found.")


class BookingConflict(BookingError):
    rule = "booking_conflict"
    http_status = 409


class UnpriceableInterval(BookingError):
    rule = "unpriceable_interval"
    http_status = 422


class OverlappingTierConfig(BookingError):
    rule = "overlapping_tier_config"
    http_status = 422


class InvalidStateTransition(BookingError):
    rule = "invalid_state_transition"
    http_status = 409

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move a booking from {current} to {target}.")


class OutsideOperatingHours(BookingError):
    rule = "outside_operating_hours"
    http_status = 422


class PriceMismatch(BookingError):
    rule = "price_mismatch"
    http_status = 422


class InvalidBookingCode(BookingError):
    rule = "invalid_booking_code"
    http_status = 422
