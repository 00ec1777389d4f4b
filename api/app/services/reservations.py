"""Reservation persistence: the database side of booking and availability.

The scheduling rules in booking_rules/pricing/availability are pure; this
module feeds them rows and writes their results. All functions run inside the
caller's session, which get_db commits or rolls back as a unit.

Double-booking protection: create_booking locks the field row
(SELECT ... FOR UPDATE) before reading active bookings, so concurrent requests
for the same field run read-check-write one at a time. A unique index can't
stand in for this, since overlapping-but-different ranges share no key.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import BookingError, BookingNotFound, FieldNotFound, PriceMismatch
from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from app.models.venue import Field, FieldPricing
from app.services import lifecycle
from app.services.availability import AvailabilitySlot, build_grid
from app.services.booking_rules import (
    assert_bookable,
    check_field_conflict,
    check_within_operating_hours,
    ensure_aware,
    parse_hhmm,
)
from app.services.day_type import DayType, classify
from app.services.intervals import TimeInterval
from app.services.pricing import PriceQuote, PriceTier, check_tiers_disjoint, quote_booking

logger = logging.getLogger(__name__)


def venue_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def operating_window(field: Field) -> tuple[time, time]:
    """The field's (open, close) times, falling back to the configured defaults."""
    venue = field.venue
    open_time = venue.open_time if venue and venue.open_time else parse_hhmm(settings.default_open_time)
    close_time = venue.close_time if venue and venue.close_time else parse_hhmm(settings.default_close_time)
    return open_time, close_time


def _to_tier(row: FieldPricing) -> PriceTier:
    return PriceTier(
        day_type=row.day_type,
        interval=TimeInterval(row.start_time, row.end_time),
        price_per_hour=row.price_per_hour,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def _field_query(field_id: int):
    return (
        select(Field)
        .options(selectinload(Field.venue))
        .where(Field.id == field_id, Field.is_active.is_(True))
    )


async def get_field(db: AsyncSession, field_id: int) -> Field:
    result = await db.execute(_field_query(field_id))
    field = result.scalar_one_or_none()
    if field is None:
        raise FieldNotFound(field_id)
    return field


async def lock_field(db: AsyncSession, field_id: int) -> Field:
    """Load the field with a row lock held until the transaction ends."""
    result = await db.execute(_field_query(field_id).with_for_update())
    field = result.scalar_one_or_none()
    if field is None:
        raise FieldNotFound(field_id)
    return field


async def get_field_operating_window(db: AsyncSession, field_id: int) -> tuple[time, time]:
    return operating_window(await get_field(db, field_id))


async def list_active_bookings(
    db: AsyncSession, field_id: int, within: TimeInterval | None = None
) -> list[Booking]:
    """Active bookings on the field, optionally only those overlapping within."""
    query = select(Booking).where(
        Booking.field_id == field_id,
        Booking.status.in_(ACTIVE_STATUSES),
    )
    if within is not None:
        query = query.where(Booking.start_time < within.end, Booking.end_time > within.start)
    result = await db.execute(query.order_by(Booking.start_time))
    return list(result.scalars().all())


async def list_price_tiers(db: AsyncSession, field_id: int) -> list[PriceTier]:
    result = await db.execute(
        select(FieldPricing)
        .where(FieldPricing.field_id == field_id)
        .order_by(FieldPricing.day_type, FieldPricing.start_time)
    )
    return [_to_tier(row) for row in result.scalars().all()]


async def get_booking(db: AsyncSession, booking_id: int, for_update: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


async def list_bookings(
    db: AsyncSession,
    requester_id: int | None = None,
    field_id: int | None = None,
    venue_id: int | None = None,
    status: BookingStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Booking]:
    """Newest first; page with limit/offset."""
    query = select(Booking)
    if requester_id is not None:
        query = query.where(Booking.requester_id == requester_id)
    if field_id is not None:
        query = query.where(Booking.field_id == field_id)
    if venue_id is not None:
        query = query.join(Field, Booking.field_id == Field.id).where(Field.venue_id == venue_id)
    if status is not None:
        query = query.where(Booking.status == status)
    result = await db.execute(
        query.order_by(Booking.start_time.desc(), Booking.id.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all())


async def booking_code_taken(db: AsyncSession, code: str) -> bool:
    result = await db.execute(select(Booking.id).where(Booking.booking_code == code))
    return result.first() is not None


async def unused_booking_code(db: AsyncSession, attempts: int = 5) -> str:
    """A fresh booking code not held by any booking. The unique index backs this up."""
    for _ in range(attempts):
        code = lifecycle.new_booking_code()
        if not await booking_code_taken(db, code):
            return code
    raise RuntimeError(f"No free booking code after {attempts} attempts")


# ---------------------------------------------------------------------------
# Pricing and availability
# ---------------------------------------------------------------------------


async def quote(db: AsyncSession, field_id: int, start: datetime, end: datetime) -> PriceQuote:
    """Price a range on a field without booking it."""
    tz = venue_tz()
    await get_field(db, field_id)
    tiers = await list_price_tiers(db, field_id)
    return quote_booking(tiers, ensure_aware(start, tz), ensure_aware(end, tz), tz)


async def field_availability(
    db: AsyncSession,
    field_id: int,
    query_date: date,
    slot_minutes: int,
    now: datetime | None = None,
) -> tuple[DayType, list[AvailabilitySlot]]:
    tz = venue_tz()
    field = await get_field(db, field_id)
    open_time, close_time = operating_window(field)
    day = TimeInterval(
        datetime.combine(query_date, open_time, tzinfo=tz),
        datetime.combine(query_date, close_time, tzinfo=tz),
    )
    tiers = await list_price_tiers(db, field_id)
    bookings = await list_active_bookings(db, field_id, within=day)

    slots = build_grid(
        field_id=field_id,
        query_date=query_date,
        open_time=open_time,
        close_time=close_time,
        tiers=tiers,
        bookings=bookings,
        slot_minutes=slot_minutes,
        tz=tz,
        now=now,
    )
    return classify(query_date), slots


async def replace_field_pricing(db: AsyncSession, field_id: int, tiers: list[PriceTier]) -> list[PriceTier]:
    """Replace all of a field's tiers. Overlapping tiers are rejected before any write."""
    check_tiers_disjoint(tiers)
    await lock_field(db, field_id)

    await db.execute(delete(FieldPricing).where(FieldPricing.field_id == field_id))
    db.add_all(
        FieldPricing(
            field_id=field_id,
            day_type=tier.day_type,
            start_time=tier.interval.start,
            end_time=tier.interval.end,
            price_per_hour=tier.price_per_hour,
        )
        for tier in tiers
    )
    await db.flush()

    logger.info("Replaced pricing for field %s with %d tiers", field_id, len(tiers))
    return sorted(tiers, key=lambda t: (t.day_type.value, t.interval.start))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_booking(
    db: AsyncSession,
    field_id: int,
    requester_id: int,
    start: datetime,
    end: datetime,
    now: datetime,
    total_price: Decimal | None = None,
    note: str | None = None,
) -> Booking:
    """Validate, conflict-check, price and insert a PENDING booking.

    The conflict check runs on bookings read after the field lock is taken,
    never on data read earlier in the request.
    """
    tz = venue_tz()
    try:
        candidate = assert_bookable(ensure_aware(start, tz), ensure_aware(end, tz), now)

        field = await lock_field(db, field_id)
        open_time, close_time = operating_window(field)
        check_within_operating_hours(candidate, open_time, close_time, tz)

        active = await list_active_bookings(db, field_id, within=candidate)
        check_field_conflict(active, field_id, candidate, tz)

        tiers = await list_price_tiers(db, field_id)
        price = quote_booking(tiers, candidate.start, candidate.end, tz).price
        if total_price is not None and Decimal(total_price) != price:
            raise PriceMismatch(f"Quoted price is {price}, request says {total_price}.")
    except BookingError as exc:
        logger.info("Booking rejected on field %s (%s): %s", field_id, exc.rule, exc.message)
        raise

    booking = Booking(
        field_id=field_id,
        requester_id=requester_id,
        start_time=candidate.start,
        end_time=candidate.end,
        booking_code=await unused_booking_code(db),
        status=lifecycle.INITIAL_STATUS,
        total_price=price,
        note=note,
    )
    db.add(booking)
    await db.flush()

    logger.info(
        "Booking #%s created on field %s for requester %s: %s at %s",
        booking.id, field_id, requester_id, candidate, price,
    )
    return booking


async def update_booking_status(
    db: AsyncSession,
    booking_id: int,
    target: BookingStatus,
    now: datetime,
    booking_code: str | None = None,
) -> Booking:
    """Apply a status transition. Completing requires the booking's code."""
    booking = await get_booking(db, booking_id, for_update=True)
    previous = booking.status
    if target == BookingStatus.COMPLETED:
        lifecycle.complete(booking, booking_code, now)
    else:
        lifecycle.apply(booking, target, now)
    await db.flush()

    logger.info("Booking #%s moved from %s to %s", booking_id, previous.value, target.value)
    return booking
