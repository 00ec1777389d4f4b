"""Pricing service for booking price calculation.

A field's pricing is a flat list of tiers: (day type, time-of-day range, price
per hour). The price of a request is the sum of each tier's hourly price times
the part of the request it covers, so a 16:00-18:00 booking straddling a 17:00
tier boundary pays one hour at each rate. Any part of the request that no tier
covers makes the whole request unpriceable; we never price a partial range.

Overlapping tiers of the same day type are a configuration error. They are
rejected when pricing is saved and again here at resolution time, rather than
being summed.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from itertools import groupby

from app.core.errors import InvalidRange, OverlappingTierConfig, UnpriceableInterval
from app.services.day_type import DayType, classify
from app.services.intervals import SECONDS_PER_HOUR, TimeInterval

CENT = Decimal("0.01")


def to_price(rate_seconds: Decimal) -> Decimal:
    """Turn a sum of (price per hour * seconds) into a rounded price."""
    return (rate_seconds / SECONDS_PER_HOUR).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceTier:
    day_type: DayType
    interval: TimeInterval
    price_per_hour: Decimal

    def __post_init__(self):
        if not self.interval.is_time_of_day:
            raise InvalidRange("Price tiers must use times of day, not timestamps.")
        if self.price_per_hour < 0:
            raise InvalidRange(f"Price per hour must not be negative, got {self.price_per_hour}.")


@dataclass(frozen=True)
class PriceQuote:
    price: Decimal
    coverage_hours: Decimal
    day_type: DayType


def check_tiers_disjoint(tiers: list[PriceTier]) -> None:
    """Raise OverlappingTierConfig if two tiers of the same day type overlap."""
    ordered = sorted(tiers, key=lambda t: (t.day_type.value, t.interval.start))
    for day_type, group in groupby(ordered, key=lambda t: t.day_type):
        previous = None
        for tier in group:
            if previous is not None and previous.interval.overlaps(tier.interval):
                raise OverlappingTierConfig(
                    f"{day_type.value.capitalize()} tiers {previous.interval} and {tier.interval} overlap."
                )
            previous = tier


def tiers_for(tiers: list[PriceTier], day_type: DayType) -> list[PriceTier]:
    return [t for t in tiers if t.day_type == day_type]


def min_tier_price(tiers: list[PriceTier], day_type: DayType) -> Decimal | None:
    """Cheapest hourly rate for the day type, or None when it has no tiers."""
    prices = [t.price_per_hour for t in tiers_for(tiers, day_type)]
    return min(prices) if prices else None


def resolve_price(tiers: list[PriceTier], day_type: DayType, request: TimeInterval) -> PriceQuote:
    """Price a time-of-day range from the tiers of one day type.

    Raises UnpriceableInterval if any part of the range has no tier, and
    OverlappingTierConfig if the day type's tiers overlap each other.
    """
    if not request.is_time_of_day:
        raise InvalidRange("Pricing resolves times of day; convert timestamps with quote_booking().")

    day_tiers = tiers_for(tiers, day_type)
    check_tiers_disjoint(day_tiers)

    weighted = Decimal(0)  # price-per-hour * seconds, divided once at the end
    covered_seconds = 0
    for tier in day_tiers:
        part = tier.interval.intersection(request)
        if part is None:
            continue
        seconds = part.duration_seconds()
        covered_seconds += seconds
        weighted += tier.price_per_hour * seconds

    if covered_seconds < request.duration_seconds():
        raise UnpriceableInterval(f"No {day_type.value} price is configured for part of {request}.")

    return PriceQuote(
        price=to_price(weighted),
        coverage_hours=Decimal(covered_seconds) / SECONDS_PER_HOUR,
        day_type=day_type,
    )


def quote_booking(tiers: list[PriceTier], start: datetime, end: datetime, tz: tzinfo) -> PriceQuote:
    """Price an absolute booking range in the venue's local time.

    The day type comes from the local start date. A range that crosses local
    midnight cannot be priced, since tiers are per day.
    """
    TimeInterval(start, end)
    local_start = start.astimezone(tz)
    local_end = end.astimezone(tz)
    if local_end.date() != local_start.date():
        raise UnpriceableInterval(
            f"Bookings must start and end on the same day ({local_start.date()} to {local_end.date()})."
        )

    day_type = classify(local_start.date())
    return resolve_price(tiers, day_type, TimeInterval(local_start.time(), local_end.time()))
