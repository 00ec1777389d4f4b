"""Venue, field and pricing models.

Venue = a sports centre with a single operating window (e.g. 06:00-23:00).
Field = an individual bookable pitch at a venue.
FieldPricing = one hourly price tier for a field on weekdays or weekends.
"""

import enum
from datetime import time
from decimal import Decimal

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.services.day_type import DayType


class FieldType(str, enum.Enum):
    FIELD_5VS5 = "field_5vs5"
    FIELD_7VS7 = "field_7vs7"
    FIELD_11VS11 = "field_11vs11"


class Venue(TimestampMixin, Base):
    __tablename__ = "venues"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(100))

    # Operating window; settings.default_open_time/close_time apply when unset
    open_time: Mapped[time | None] = mapped_column(Time)
    close_time: Mapped[time | None] = mapped_column(Time)

    fields: Mapped[list["Field"]] = relationship(back_populates="venue", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Venue {self.name}>"


class Field(TimestampMixin, Base):
    """A bookable pitch at a venue."""

    __tablename__ = "fields"

    id: Mapped[int] = mapped_column(primary_key=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    field_type: Mapped[FieldType] = mapped_column(
        Enum(FieldType, name="field_type", values_callable=lambda e: [x.value for x in e]),
        default=FieldType.FIELD_5VS5,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    venue: Mapped["Venue"] = relationship(back_populates="fields")
    pricings: Mapped[list["FieldPricing"]] = relationship(
        back_populates="field", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Field {self.name} @ venue {self.venue_id}>"


class FieldPricing(TimestampMixin, Base):
    """Hourly price for a time-of-day range on one day type."""

    __tablename__ = "field_pricings"

    id: Mapped[int] = mapped_column(primary_key=True)
    field_id: Mapped[int] = mapped_column(ForeignKey("fields.id", ondelete="CASCADE"), nullable=False)
    day_type: Mapped[DayType] = mapped_column(
        Enum(DayType, name="day_type", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    price_per_hour: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    field: Mapped["Field"] = relationship(back_populates="pricings")

    __table_args__ = (Index("ix_field_pricings_field_day", "field_id", "day_type", "start_time"),)

    def __repr__(self) -> str:
        return f"<FieldPricing {self.day_type.value} {self.start_time}-{self.end_time} @ {self.price_per_hour}>"
