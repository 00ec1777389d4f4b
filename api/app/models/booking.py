"""Booking model.

A booking reserves a field for a requester over an absolute time range.
This is the core transactional entity in the system.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# The only statuses that hold a field. Everything else is free to overlap.
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    field_id: Mapped[int] = mapped_column(ForeignKey("fields.id"), nullable=False)
    # Identity lives with the auth collaborator; we only keep the reference.
    requester_id: Mapped[int] = mapped_column(nullable=False)
    # Handed to the player at booking time; shown at the venue to complete it.
    booking_code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)

    # When (UTC instants, half-open [start_time, end_time))
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=lambda e: [x.value for x in e]),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    note: Mapped[str | None] = mapped_column(Text)

    field: Mapped["Field"] = relationship()

    __table_args__ = (
        # Conflict lookups: active bookings on one field ordered by start.
        # Overlap cannot be expressed as a unique key, see reservations.create_booking.
        Index("ix_bookings_field_start", "field_id", "start_time"),
        Index("ix_bookings_requester", "requester_id", "start_time"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return f"<Booking {self.start_time}-{self.end_time} field={self.field_id} {self.status.value}>"


# Import for type hints
from app.models.venue import Field  # noqa: E402
