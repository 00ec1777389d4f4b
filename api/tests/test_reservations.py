"""Reservation service tests: booking creation and status updates.

The row-level reads (lock_field, list_active_bookings, list_price_tiers,
get_booking) are patched, and the session is a mock, so these exercise the
ordering and rule wiring of the service without a database.
"""

import re
from datetime import UTC, date, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from app.core.errors import (
    BookingConflict,
    FieldNotFound,
    InvalidBookingCode,
    InvalidRange,
    InvalidStateTransition,
    OutsideOperatingHours,
    OverlappingTierConfig,
    PastStartTime,
    PriceMismatch,
    UnpriceableInterval,
)
from app.models.booking import Booking, BookingStatus
from app.services import reservations
from app.services.day_type import DayType
from app.services.intervals import TimeInterval
from app.services.pricing import PriceTier

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")
NOW = datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
WEDNESDAY = date(2026, 1, 14)


def _at(hour: int, minute: int = 0, day: date = WEDNESDAY) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=VN_TZ)


def _existing(field_id=1, start=(10, 0), end=(11, 30), status=BookingStatus.CONFIRMED):
    return SimpleNamespace(id=99, field_id=field_id, status=status, start_time=_at(*start), end_time=_at(*end))


@pytest.fixture
def db():
    session = MagicMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    return session


@pytest.fixture
def reads(field_row, tiers):
    """Patch the row-level reads; yields the mocks for per-test tweaking."""
    with (
        patch.object(reservations, "lock_field", new_callable=AsyncMock, return_value=field_row) as lock,
        patch.object(reservations, "list_active_bookings", new_callable=AsyncMock, return_value=[]) as active,
        patch.object(reservations, "list_price_tiers", new_callable=AsyncMock, return_value=tiers) as price_tiers,
        patch.object(reservations, "booking_code_taken", new_callable=AsyncMock, return_value=False) as taken,
    ):
        yield SimpleNamespace(lock=lock, active=active, tiers=price_tiers, code_taken=taken)


# ---------------------------------------------------------------------------
# create_booking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_booking_pending_with_resolved_price(db, reads):
    booking = await reservations.create_booking(db, 1, 7, _at(16), _at(18), NOW)

    assert isinstance(booking, Booking)
    assert booking.status == BookingStatus.PENDING
    assert booking.total_price == Decimal(600000)
    assert booking.field_id == 1
    assert booking.requester_id == 7
    assert re.fullmatch(r"BM[A-Z0-9]{6}", booking.booking_code)
    db.add.assert_called_once_with(booking)
    db.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_booking_retries_taken_code(db, reads):
    reads.code_taken.side_effect = [True, True, False]

    booking = await reservations.create_booking(db, 1, 7, _at(16), _at(18), NOW)

    assert reads.code_taken.await_count == 3
    assert booking.booking_code == reads.code_taken.await_args.args[1]


@pytest.mark.asyncio
async def test_create_booking_locks_before_reading_bookings(db, reads):
    order = []
    reads.lock.side_effect = lambda *a, **kw: order.append("lock") or SimpleNamespace(
        venue=SimpleNamespace(open_time=time(6, 0), close_time=time(23, 0))
    )
    reads.active.side_effect = lambda *a, **kw: order.append("read") or []

    await reservations.create_booking(db, 1, 7, _at(16), _at(18), NOW)

    assert order == ["lock", "read"]
    candidate = reads.active.await_args.kwargs["within"]
    assert candidate == TimeInterval(_at(16), _at(18))


@pytest.mark.asyncio
async def test_create_booking_conflict(db, reads):
    reads.active.return_value = [_existing()]

    with pytest.raises(BookingConflict):
        await reservations.create_booking(db, 1, 7, _at(10, 30), _at(12), NOW)
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_booking_other_field_admitted(db, reads):
    # The persistence read is per field, but the check filters again anyway
    reads.active.return_value = [_existing(field_id=1)]

    booking = await reservations.create_booking(db, 2, 7, _at(10, 30), _at(12), NOW)
    assert booking.field_id == 2


@pytest.mark.asyncio
async def test_create_booking_back_to_back(db, reads):
    reads.active.return_value = [_existing(start=(9, 0), end=(10, 0))]

    booking = await reservations.create_booking(db, 1, 7, _at(10), _at(11), NOW)
    assert booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_create_booking_zero_length_before_field_lookup(db, reads):
    with pytest.raises(InvalidRange):
        await reservations.create_booking(db, 1, 7, _at(10), _at(10), NOW)
    reads.lock.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_booking_past(db, reads):
    with pytest.raises(PastStartTime):
        await reservations.create_booking(db, 1, 7, _at(10), _at(11), now=_at(12))


@pytest.mark.asyncio
async def test_create_booking_unknown_field(db, reads):
    reads.lock.side_effect = FieldNotFound(5)

    with pytest.raises(FieldNotFound):
        await reservations.create_booking(db, 5, 7, _at(10), _at(11), NOW)


@pytest.mark.asyncio
async def test_create_booking_outside_operating_hours(db, reads):
    with pytest.raises(OutsideOperatingHours):
        await reservations.create_booking(db, 1, 7, _at(22, 30), _at(23, 30), NOW)


@pytest.mark.asyncio
async def test_create_booking_unpriceable(db, reads):
    reads.tiers.return_value = [
        PriceTier(DayType.WEEKDAY, TimeInterval(time(6, 0), time(17, 0)), Decimal(200000)),
    ]

    with pytest.raises(UnpriceableInterval):
        await reservations.create_booking(db, 1, 7, _at(16), _at(18), NOW)
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_booking_naive_times_are_venue_local(db, reads):
    booking = await reservations.create_booking(db, 1, 7, datetime(2026, 1, 14, 16), datetime(2026, 1, 14, 18), NOW)
    assert booking.start_time == _at(16)
    assert booking.total_price == Decimal(600000)


@pytest.mark.asyncio
async def test_create_booking_matching_client_price(db, reads):
    booking = await reservations.create_booking(
        db, 1, 7, _at(16), _at(18), NOW, total_price=Decimal("600000")
    )
    assert booking.total_price == Decimal(600000)


@pytest.mark.asyncio
async def test_create_booking_price_mismatch(db, reads):
    with pytest.raises(PriceMismatch):
        await reservations.create_booking(db, 1, 7, _at(16), _at(18), NOW, total_price=Decimal(500000))
    db.add.assert_not_called()


# ---------------------------------------------------------------------------
# update_booking_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_confirm_then_confirm_again(db):
    booking = SimpleNamespace(id=3, status=BookingStatus.PENDING, cancelled_at=None)
    with patch.object(reservations, "get_booking", new_callable=AsyncMock, return_value=booking) as get:
        result = await reservations.update_booking_status(db, 3, BookingStatus.CONFIRMED, NOW)
        assert result.status == BookingStatus.CONFIRMED
        get.assert_awaited_with(db, 3, for_update=True)

        with pytest.raises(InvalidStateTransition):
            await reservations.update_booking_status(db, 3, BookingStatus.CONFIRMED, NOW)


@pytest.mark.asyncio
async def test_complete_with_matching_code(db):
    booking = SimpleNamespace(id=3, status=BookingStatus.CONFIRMED, cancelled_at=None, booking_code="BMQ7K2XA")
    with patch.object(reservations, "get_booking", new_callable=AsyncMock, return_value=booking):
        await reservations.update_booking_status(db, 3, BookingStatus.COMPLETED, NOW, booking_code="BMQ7K2XA")
    assert booking.status == BookingStatus.COMPLETED
    db.flush.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["WRONGCODE", None])
async def test_complete_with_wrong_or_missing_code(db, code):
    booking = SimpleNamespace(id=3, status=BookingStatus.CONFIRMED, cancelled_at=None, booking_code="BMQ7K2XA")
    with patch.object(reservations, "get_booking", new_callable=AsyncMock, return_value=booking):
        with pytest.raises(InvalidBookingCode):
            await reservations.update_booking_status(db, 3, BookingStatus.COMPLETED, NOW, booking_code=code)
    assert booking.status == BookingStatus.CONFIRMED
    db.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_bookings_pages(db):
    await reservations.list_bookings(db, field_id=1, limit=10, offset=20)

    query = db.execute.await_args.args[0]
    sql = str(query.compile(compile_kwargs={"literal_binds": True}))
    assert "LIMIT 10" in sql
    assert "OFFSET 20" in sql


@pytest.mark.asyncio
async def test_cancel_sets_cancelled_at(db):
    booking = SimpleNamespace(id=3, status=BookingStatus.CONFIRMED, cancelled_at=None)
    with patch.object(reservations, "get_booking", new_callable=AsyncMock, return_value=booking):
        await reservations.update_booking_status(db, 3, BookingStatus.CANCELLED, NOW)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_at == NOW


# ---------------------------------------------------------------------------
# replace_field_pricing / operating_window
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_replace_pricing_rejects_overlap_before_writing(db):
    clashing = [
        PriceTier(DayType.WEEKDAY, TimeInterval(time(6, 0), time(17, 0)), Decimal(1)),
        PriceTier(DayType.WEEKDAY, TimeInterval(time(16, 0), time(23, 0)), Decimal(2)),
    ]
    with pytest.raises(OverlappingTierConfig):
        await reservations.replace_field_pricing(db, 1, clashing)
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_replace_pricing_writes_rows(db, field_row, tiers):
    with patch.object(reservations, "lock_field", new_callable=AsyncMock, return_value=field_row):
        saved = await reservations.replace_field_pricing(db, 1, list(reversed(tiers)))

    db.execute.assert_awaited_once()  # the delete
    rows = list(db.add_all.call_args.args[0])
    assert len(rows) == 3
    assert {r.price_per_hour for r in rows} == {Decimal(200000), Decimal(300000), Decimal(400000)}
    assert [t.interval.start for t in saved if t.day_type == DayType.WEEKDAY] == [time(6, 0), time(17, 0)]


def test_operating_window_defaults():
    field = SimpleNamespace(venue=SimpleNamespace(open_time=None, close_time=time(22, 0)))
    assert reservations.operating_window(field) == (time(6, 0), time(22, 0))


@pytest.mark.asyncio
async def test_get_field_operating_window_uses_venue_hours(db):
    field = SimpleNamespace(venue=SimpleNamespace(open_time=time(7, 0), close_time=time(22, 0)))
    with patch.object(reservations, "get_field", new_callable=AsyncMock, return_value=field) as get:
        assert await reservations.get_field_operating_window(db, 4) == (time(7, 0), time(22, 0))
    get.assert_awaited_once_with(db, 4)
