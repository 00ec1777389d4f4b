"""Pydantic schemas for API serialisation."""

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.models.booking import BookingStatus
from app.services.day_type import DayType

# --- Booking ---


class BookingCreate(BaseModel):
    field_id: int
    requester_id: int
    start_time: datetime
    end_time: datetime
    total_price: Decimal | None = None  # optional client-side quote, verified on create
    note: str | None = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    field_id: int
    requester_id: int
    booking_code: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    total_price: Decimal
    note: str | None
    cancelled_at: datetime | None
    created_at: datetime


class BookingComplete(BaseModel):
    booking_code: str  # shown by the player at the venue


# --- Pricing ---


class PricingTierIn(BaseModel):
    start_time: time
    end_time: time
    price_per_hour: Decimal


class PricingTierOut(BaseModel):
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    price_per_hour: Decimal


class FieldPricingIn(BaseModel):
    weekdays: list[PricingTierIn] = []
    weekends: list[PricingTierIn] = []


class FieldPricingOut(BaseModel):
    field_id: int
    weekdays: list[PricingTierOut]
    weekends: list[PricingTierOut]


class PriceQuoteOut(BaseModel):
    field_id: int
    start_time: datetime
    end_time: datetime
    day_type: DayType
    price: Decimal
    coverage_hours: Decimal


# --- Availability ---


class SlotOut(BaseModel):
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    price: Decimal | None
    is_peak_hour: bool
    is_available: bool
    error: str | None = None


class AvailabilityOut(BaseModel):
    field_id: int
    date: date
    day_type: DayType
    slot_minutes: int
    slots: list[SlotOut]
