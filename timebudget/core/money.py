"""
Decimal helpers for money and hours.

Aggregation keeps full Decimal precision; rounding happens only when a
value leaves the engine (``money``, ``hours``, ``percentage``).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from timebudget.core.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Coerce a stored or submitted value to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal('0.1'), not its
    binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", details={"field": field})
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", details={"field": field})
    return result


def positive_amount(value: Any, field: str = "amount") -> Decimal:
    """Parse *value* and require it to be strictly positive."""
    amount = to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0", details={"field": field})
    return amount


def money(value: Decimal) -> float:
    """Round to cents for presentation."""
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def hours(value: Decimal) -> float:
    """Round an hour total to two places for presentation."""
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def percentage(part: Decimal, whole: Decimal) -> int:
    """``part / whole * 100`` rounded half-up to an int; 0 when whole is 0."""
    if whole == 0:
        return 0
    return int((part / whole * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def as_storage(value: Optional[Decimal]) -> Optional[str]:
    """Decimal -> TEXT column value."""
    return None if value is None else str(value)
