"""Weekday/weekend classification. Drives which price tiers apply to a date."""

import enum
from datetime import date


class DayType(str, enum.Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


def classify(day: date) -> DayType:
    """Saturday and Sunday are weekend; every other day is a weekday.

    Accepts datetimes too (a datetime is a date); callers must convert to the
    venue's local zone first, otherwise late-evening UTC instants land on the
    wrong day.
    """
    return DayType.WEEKEND if day.weekday() >= 5 else DayType.WEEKDAY
