"""Seed the database with test venues, fields and price tiers.

Run with: python -m scripts.seed
Creates the tables, three venues with their fields, and weekday/weekend
pricing for every field. Idempotent: venues that already exist are skipped.
"""

import asyncio
from datetime import time
from decimal import Decimal

from sqlalchemy import select

from app.core.database import async_session_factory, engine
from app.models import Base, Field, FieldPricing, FieldType, Venue
from app.services.day_type import DayType

# Hourly prices in VND. Evenings (17:00 on) are the busy period.
VENUES = [
    {
        "name": "San Bong Thu Duc",
        "address": "123 Vo Van Ngan, Linh Chieu",
        "city": "Ho Chi Minh",
        "open_time": time(6, 0),
        "close_time": time(23, 0),
        "fields": [
            {"name": "San 5A", "field_type": FieldType.FIELD_5VS5, "offpeak": 200000, "peak": 400000},
            {"name": "San 7A", "field_type": FieldType.FIELD_7VS7, "offpeak": 500000, "peak": 700000},
            {"name": "San 11", "field_type": FieldType.FIELD_11VS11, "offpeak": 1000000, "peak": 1400000},
        ],
    },
    {
        "name": "San Bong Quan 1",
        "address": "456 Nguyen Hue, Ben Nghe",
        "city": "Ho Chi Minh",
        "open_time": time(7, 0),
        "close_time": time(22, 0),
        "fields": [
            {"name": "San 5A", "field_type": FieldType.FIELD_5VS5, "offpeak": 350000, "peak": 500000},
            {"name": "San 7A", "field_type": FieldType.FIELD_7VS7, "offpeak": 550000, "peak": 750000},
        ],
    },
    {
        "name": "San Bong Tan Binh",
        "address": "789 Nguyen Huu Canh, Phuong 22",
        "city": "Ho Chi Minh",
        "open_time": time(5, 30),
        "close_time": time(23, 30),
        "fields": [
            {"name": "San 5A", "field_type": FieldType.FIELD_5VS5, "offpeak": 400000, "peak": 550000},
            {"name": "San 11", "field_type": FieldType.FIELD_11VS11, "offpeak": 1200000, "peak": 1600000},
        ],
    },
]

PEAK_START = time(17, 0)
WEEKEND_MARKUP = Decimal("1.2")


def _tiers(field: Field, venue: dict, rates: dict) -> list[FieldPricing]:
    """Off-peak until 17:00, peak after. Weekends carry a flat markup."""
    rows = []
    for day_type, factor in ((DayType.WEEKDAY, Decimal(1)), (DayType.WEEKEND, WEEKEND_MARKUP)):
        rows.append(FieldPricing(
            field_id=field.id,
            day_type=day_type,
            start_time=venue["open_time"],
            end_time=PEAK_START,
            price_per_hour=Decimal(rates["offpeak"]) * factor,
        ))
        rows.append(FieldPricing(
            field_id=field.id,
            day_type=day_type,
            start_time=PEAK_START,
            end_time=venue["close_time"],
            price_per_hour=Decimal(rates["peak"]) * factor,
        ))
    return rows


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        total_fields = 0
        for venue_spec in VENUES:
            result = await db.execute(select(Venue).where(Venue.name == venue_spec["name"]))
            if result.scalar_one_or_none():
                print(f"Skipping {venue_spec['name']} (exists)")
                continue

            venue = Venue(
                name=venue_spec["name"],
                address=venue_spec["address"],
                city=venue_spec["city"],
                open_time=venue_spec["open_time"],
                close_time=venue_spec["close_time"],
            )
            db.add(venue)
            await db.flush()

            for field_spec in venue_spec["fields"]:
                field = Field(venue_id=venue.id, name=field_spec["name"], field_type=field_spec["field_type"])
                db.add(field)
                await db.flush()
                db.add_all(_tiers(field, venue_spec, field_spec))
                total_fields += 1

        await db.commit()

        print(f"Seeded {len(VENUES)} venues")
        print(f"  {total_fields} fields with weekday/weekend pricing")


if __name__ == "__main__":
    asyncio.run(seed())
