"""
Cost calculation and week bucketing for time entries.

Everything here is pure: no database access, Decimal in, Decimal out.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from timebudget.core.money import to_decimal

SECONDS_PER_HOUR = Decimal(3600)
WEEK_BUCKETS = 5


def week_bucket(d: date) -> int:
    """Map a date to its week bucket (1-5) within the month.

    Days 1-7 -> 1, 8-14 -> 2, 15-21 -> 3, 22-28 -> 4, 29-31 -> 5.
    Fixed day-of-month partition, not ISO weeks; bucket 5 holds 0-3 days.
    """
    return min((d.day - 1) // 7 + 1, WEEK_BUCKETS)


def entry_hours(duration_seconds: int) -> Decimal:
    """Unrounded hours for a duration."""
    return Decimal(int(duration_seconds)) / SECONDS_PER_HOUR


def entry_cost(rate_per_hour: Any, duration_seconds: int) -> Decimal:
    """``rate * hours`` at full precision. Uses the entry's locked rate."""
    return to_decimal(rate_per_hour, "rate_per_hour") * entry_hours(duration_seconds)
