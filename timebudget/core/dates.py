"""
Calendar helpers shared by the projector, aggregator and ledger.
"""

from datetime import date
from typing import Any, Optional, Tuple

from timebudget.core.errors import ValidationError


def parse_date(value: Any, field: str = "date", required: bool = True) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` string (or pass through a date)."""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required", details={"field": field})
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(
            f"{field} must be a date in YYYY-MM-DD format", details={"field": field}
        )


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return (first day of month, first day of next month)."""
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def validate_year_month(year: Any, month: Any) -> Tuple[int, int]:
    """Validate report parameters against the configured year range."""
    from timebudget.core.config import get_year_range

    min_year, max_year = get_year_range()
    try:
        y = int(year)
        m = int(month)
    except (TypeError, ValueError):
        raise ValidationError("year and month are required integers")
    if not (min_year <= y <= max_year):
        raise ValidationError(
            f"year must be between {min_year} and {max_year}", details={"field": "year"}
        )
    if not (1 <= m <= 12):
        raise ValidationError("month must be between 1 and 12", details={"field": "month"})
    return y, m


def month_key(d: date) -> str:
    """``YYYY-MM`` label for a date."""
    return f"{d.year}-{d.month:02d}"
