"""All models imported here for Alembic autogenerate discovery."""

from app.models.base import Base
from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from app.models.venue import Field, FieldPricing, FieldType, Venue

__all__ = [
    "Base",
    "Venue",
    "Field",
    "FieldType",
    "FieldPricing",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
]
