"""Field routes: availability grid, price quotes and pricing configuration."""

from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.schemas import (
    AvailabilityOut,
    FieldPricingIn,
    FieldPricingOut,
    PriceQuoteOut,
    PricingTierIn,
    PricingTierOut,
    SlotOut,
)
from app.services.day_type import DayType
from app.services.intervals import TimeInterval
from app.services.pricing import PriceTier
from app.services.reservations import (
    field_availability,
    get_field,
    list_price_tiers,
    quote,
    replace_field_pricing,
)

router = APIRouter(prefix="/fields", tags=["fields"])


def _hhmm(t) -> str:
    return t.strftime("%H:%M")


def _tiers_out(field_id: int, tiers: list[PriceTier]) -> FieldPricingOut:
    def rows(day_type: DayType) -> list[PricingTierOut]:
        return [
            PricingTierOut(
                start_time=_hhmm(t.interval.start),
                end_time=_hhmm(t.interval.end),
                price_per_hour=t.price_per_hour,
            )
            for t in tiers
            if t.day_type == day_type
        ]

    return FieldPricingOut(field_id=field_id, weekdays=rows(DayType.WEEKDAY), weekends=rows(DayType.WEEKEND))


def _tiers_in(day_type: DayType, rows: list[PricingTierIn]) -> list[PriceTier]:
    return [
        PriceTier(
            day_type=day_type,
            interval=TimeInterval(row.start_time, row.end_time),
            price_per_hour=row.price_per_hour,
        )
        for row in rows
    ]


@router.get("/{field_id}/availability", response_model=AvailabilityOut)
async def get_availability(
    field_id: int,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    slot_minutes: int = Query(settings.slot_minutes, gt=0, le=24 * 60),
    db: AsyncSession = Depends(get_db),
):
    """Return the slot grid for one field on one date, ready for rendering."""
    day_type, slots = await field_availability(db, field_id, query_date, slot_minutes, now=datetime.now(UTC))
    return AvailabilityOut(
        field_id=field_id,
        date=query_date,
        day_type=day_type,
        slot_minutes=slot_minutes,
        slots=[
            SlotOut(
                start_time=_hhmm(s.start_time),
                end_time=_hhmm(s.end_time),
                price=s.price,
                is_peak_hour=s.is_peak_hour,
                is_available=s.is_available,
                error=s.error,
            )
            for s in slots
        ],
    )


@router.get("/{field_id}/quote", response_model=PriceQuoteOut)
async def get_quote(
    field_id: int,
    start_time: datetime,
    end_time: datetime,
    db: AsyncSession = Depends(get_db),
):
    result = await quote(db, field_id, start_time, end_time)
    return PriceQuoteOut(
        field_id=field_id,
        start_time=start_time,
        end_time=end_time,
        day_type=result.day_type,
        price=result.price,
        coverage_hours=result.coverage_hours,
    )


@router.get("/{field_id}/pricing", response_model=FieldPricingOut)
async def get_pricing(field_id: int, db: AsyncSession = Depends(get_db)):
    await get_field(db, field_id)
    return _tiers_out(field_id, await list_price_tiers(db, field_id))


@router.put("/{field_id}/pricing", response_model=FieldPricingOut)
async def put_pricing(field_id: int, body: FieldPricingIn, db: AsyncSession = Depends(get_db)):
    """Replace the field's weekday and weekend tiers in one go."""
    tiers = _tiers_in(DayType.WEEKDAY, body.weekdays) + _tiers_in(DayType.WEEKEND, body.weekends)
    saved = await replace_field_pricing(db, field_id, tiers)
    return _tiers_out(field_id, saved)
