"""Shared test fixtures."""

from datetime import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.database import get_db
from app.main import app
from app.services.day_type import DayType
from app.services.intervals import TimeInterval
from app.services.pricing import PriceTier


def _tier(day_type: DayType, start: time, end: time, price: int) -> PriceTier:
    return PriceTier(day_type=day_type, interval=TimeInterval(start, end), price_per_hour=Decimal(price))


@pytest.fixture
def tiers() -> list[PriceTier]:
    """Weekday off-peak/peak split at 17:00, flat weekend rate, both 06:00-23:00."""
    return [
        _tier(DayType.WEEKDAY, time(6, 0), time(17, 0), 200000),
        _tier(DayType.WEEKDAY, time(17, 0), time(23, 0), 400000),
        _tier(DayType.WEEKEND, time(6, 0), time(23, 0), 300000),
    ]


@pytest.fixture
def field_row():
    """Stand-in for a Field row with its venue loaded."""
    return SimpleNamespace(id=1, venue=SimpleNamespace(open_time=time(6, 0), close_time=time(23, 0)))


@pytest.fixture
async def client():
    """HTTP client against the app with the database dependency stubbed out.

    Route tests patch the persistence functions, so no session is needed.
    """

    async def _no_db():
        yield None

    app.dependency_overrides[get_db] = _no_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)
