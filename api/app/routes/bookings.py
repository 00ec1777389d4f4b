"""Booking routes: create, list, fetch, and the confirm/cancel/complete transitions.

Rule violations raise BookingError subclasses; the app-level handler in
app.main turns them into {"detail": [{"rule", "message"}]} responses.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.booking import BookingStatus
from app.schemas import BookingComplete, BookingCreate, BookingOut
from app.services.reservations import create_booking, get_booking, list_bookings, update_booking_status

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create(body: BookingCreate, db: AsyncSession = Depends(get_db)):
    return await create_booking(
        db,
        field_id=body.field_id,
        requester_id=body.requester_id,
        start=body.start_time,
        end=body.end_time,
        now=datetime.now(UTC),
        total_price=body.total_price,
        note=body.note,
    )


@router.get("", response_model=list[BookingOut])
async def list_all(
    requester_id: int | None = None,
    field_id: int | None = None,
    venue_id: int | None = None,
    booking_status: BookingStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await list_bookings(
        db,
        requester_id=requester_id,
        field_id=field_id,
        venue_id=venue_id,
        status=booking_status,
        limit=limit,
        offset=offset,
    )


@router.get("/{booking_id}", response_model=BookingOut)
async def get_one(booking_id: int, db: AsyncSession = Depends(get_db)):
    return await get_booking(db, booking_id)


@router.patch("/{booking_id}/confirm", response_model=BookingOut)
async def confirm(booking_id: int, db: AsyncSession = Depends(get_db)):
    return await update_booking_status(db, booking_id, BookingStatus.CONFIRMED, datetime.now(UTC))


@router.patch("/{booking_id}/cancel", response_model=BookingOut)
async def cancel(booking_id: int, db: AsyncSession = Depends(get_db)):
    return await update_booking_status(db, booking_id, BookingStatus.CANCELLED, datetime.now(UTC))


@router.patch("/{booking_id}/complete", response_model=BookingOut)
async def complete(booking_id: int, body: BookingComplete, db: AsyncSession = Depends(get_db)):
    """Mark a confirmed booking played. The player's booking code must match."""
    return await update_booking_status(
        db, booking_id, BookingStatus.COMPLETED, datetime.now(UTC), booking_code=body.booking_code
    )
