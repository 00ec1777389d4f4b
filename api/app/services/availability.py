"""Availability grid for a field on a given date.

Pure calculation module: no database access, no FastAPI imports.
The operating window is cut into fixed-size slots, each priced from the
field's tiers and checked against the field's active bookings. A pricing
failure marks that one slot, it never fails the whole grid.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import Decimal

from app.core.errors import InvalidRange, OverlappingTierConfig, UnpriceableInterval
from app.services.booking_rules import active_for_field, has_conflict
from app.services.day_type import DayType, classify
from app.services.intervals import TimeInterval
from app.services.pricing import PriceTier, min_tier_price, resolve_price, to_price

DEFAULT_SLOT_MINUTES = 60


@dataclass(frozen=True)
class AvailabilitySlot:
    start_time: time
    end_time: time
    price: Decimal | None
    is_peak_hour: bool
    is_available: bool
    error: str | None = None  # rule key when the slot could not be priced


def partition_window(open_time: time, close_time: time, slot_minutes: int) -> list[TimeInterval]:
    """Split [open_time, close_time) into consecutive slots.

    The last slot is shortened to end at close_time when the window doesn't
    divide evenly, e.g. 06:00-07:30 by 60 minutes gives 06:00-07:00, 07:00-07:30.
    """
    if slot_minutes <= 0:
        raise InvalidRange(f"Slot length must be positive, got {slot_minutes} minutes.")
    window = TimeInterval(open_time, close_time)

    anchor = date(2000, 1, 1)
    current = datetime.combine(anchor, window.start)
    close = datetime.combine(anchor, window.end)
    step = timedelta(minutes=slot_minutes)

    slots: list[TimeInterval] = []
    while current < close:
        slot_end = min(current + step, close)
        slots.append(TimeInterval(current.time(), slot_end.time()))
        current = slot_end
    return slots


def _price_slot(
    tiers: list[PriceTier], day_type: DayType, floor_rate: Decimal | None, part: TimeInterval
) -> tuple[Decimal | None, bool, str | None]:
    try:
        quote = resolve_price(tiers, day_type, part)
    except (UnpriceableInterval, OverlappingTierConfig) as exc:
        return None, False, exc.rule

    # Compare against what the same slot would cost at the cheapest rate, so
    # short slots aren't flagged by rounding.
    is_peak = floor_rate is not None and quote.price > to_price(floor_rate * part.duration_seconds())
    return quote.price, is_peak, None


def build_grid(
    field_id: int,
    query_date: date,
    open_time: time,
    close_time: time,
    tiers: list[PriceTier],
    bookings: list,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
    tz: tzinfo | None = None,
    now: datetime | None = None,
) -> list[AvailabilitySlot]:
    """Build the ordered slot grid for field_id on query_date.

    bookings may contain other fields or inactive statuses; only active
    bookings on field_id block a slot. When now is given, slots that have
    already started are unavailable too. tz is the venue's zone (UTC if None).
    """
    zone = tz or UTC
    day_type = classify(query_date)
    floor_rate = min_tier_price(tiers, day_type)
    active = active_for_field(bookings, field_id)

    grid: list[AvailabilitySlot] = []
    for part in partition_window(open_time, close_time, slot_minutes):
        price, is_peak, error = _price_slot(tiers, day_type, floor_rate, part)

        span = TimeInterval(
            datetime.combine(query_date, part.start, tzinfo=zone),
            datetime.combine(query_date, part.end, tzinfo=zone),
        )
        is_past = now is not None and span.start <= now

        grid.append(
            AvailabilitySlot(
                start_time=part.start,
                end_time=part.end,
                price=price,
                is_peak_hour=is_peak,
                is_available=not is_past and not has_conflict(active, field_id, span),
                error=error,
            )
        )
    return grid
