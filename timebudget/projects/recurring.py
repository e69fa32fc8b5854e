"""
Recurring Budget Projection

Turns a recurring budget definition (amount, frequency, active window)
into the retainer fee attributable to one calendar month.

Policy:
  - Whole-month inclusion: a definition that touches a month at all
    counts for the full month. No per-day proration.
  - Shares: monthly = amount, quarterly = amount / 3, yearly = amount / 12,
    in Decimal, never rounded here.
  - Deactivation is pinned to ``deactivated_on``: months that started on
    or before that date keep their fee; later months get nothing.
  - One definition governs a month. If several are eligible (e.g. a
    replacement created the month the old one was deactivated) the
    active one wins, then the one with the latest start date.

No Flask imports — used by the reporting module, API and CLI.
"""

import sqlite3
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from timebudget.core.dates import month_bounds, parse_date
from timebudget.core.errors import ValidationError
from timebudget.core.money import ZERO, to_decimal

FREQUENCY_DIVISORS = {
    "monthly": Decimal(1),
    "quarterly": Decimal(3),
    "yearly": Decimal(12),
}

VALID_FREQUENCIES = list(FREQUENCY_DIVISORS)


def monthly_share(amount: Any, frequency: str) -> Decimal:
    """Portion of *amount* attributable to a single month."""
    try:
        divisor = FREQUENCY_DIVISORS[frequency]
    except KeyError:
        raise ValidationError(
            f"frequency must be one of: {', '.join(VALID_FREQUENCIES)}",
            details={"field": "frequency"},
        )
    return to_decimal(amount) / divisor


def projects_into_month(definition: Mapping[str, Any], year: int, month: int) -> bool:
    """True if *definition* contributes to the given month.

    Window check: ``start_date <= month_end`` and ``end_date`` unset or
    ``>= month_start``, where ``month_end`` is the first day of the next
    month. A definition starting on that day is therefore still counted.
    """
    month_start, month_end = month_bounds(year, month)

    start = parse_date(definition["start_date"], "start_date")
    end = parse_date(definition.get("end_date"), "end_date", required=False)

    if start > month_end:
        return False
    if end is not None and end < month_start:
        return False

    if not definition.get("is_active"):
        deactivated_on = parse_date(
            definition.get("deactivated_on"), "deactivated_on", required=False
        )
        if deactivated_on is None or month_start > deactivated_on:
            return False

    return True


def share_for_month(definition: Mapping[str, Any], year: int, month: int) -> Decimal:
    """Retainer fee contributed by one definition to one month."""
    if not projects_into_month(definition, year, month):
        return ZERO
    return monthly_share(definition["amount"], definition["frequency"])


def _governing_sort_key(definition: Mapping[str, Any]):
    start = parse_date(definition["start_date"], "start_date") or date.min
    return (1 if definition.get("is_active") else 0, start, definition.get("id") or 0)


def _definitions(conn: sqlite3.Connection, project_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM recurring_budget_injections WHERE project_id = ?",
        (project_id,),
    ).fetchall()
    return [dict(r) for r in rows]


def _pick_governing(
    definitions: List[Dict[str, Any]], year: int, month: int
) -> Optional[Dict[str, Any]]:
    eligible = [d for d in definitions if projects_into_month(d, year, month)]
    if not eligible:
        return None
    return max(eligible, key=_governing_sort_key)


def governing_definition(
    conn: sqlite3.Connection, project_id: int, year: int, month: int
) -> Optional[Dict[str, Any]]:
    """The single recurring definition that drives the project's month, if any."""
    return _pick_governing(_definitions(conn, project_id), year, month)


def project_retainer_fee(
    conn: sqlite3.Connection, project_id: int, year: int, month: int
) -> Decimal:
    """Monthly retainer fee for a project from its recurring funding."""
    definition = governing_definition(conn, project_id, year, month)
    if definition is None:
        return ZERO
    return monthly_share(definition["amount"], definition["frequency"])


def projected_recurring_budget(
    conn: sqlite3.Connection, project_id: int, through: Optional[date] = None
) -> Decimal:
    """Recurring funding a project has accrued up to and including *through*'s month.

    Each month from a definition's own start month up to *through*
    (default today) adds the monthly share of the definition governing
    that month. Over a full quarter or year this equals the amount the
    definition would have injected.
    """
    through = through or date.today()
    definitions = _definitions(conn, project_id)
    if not definitions:
        return ZERO

    start_months = {
        d["id"]: (start.year, start.month)
        for d in definitions
        for start in [parse_date(d["start_date"], "start_date")]
    }
    year, month = min(start_months.values())

    total = ZERO
    while (year, month) <= (through.year, through.month):
        started = [d for d in definitions if start_months[d["id"]] <= (year, month)]
        definition = _pick_governing(started, year, month)
        if definition is not None:
            total += monthly_share(definition["amount"], definition["frequency"])
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return total


def department_retainer_fee(split: Mapping[str, Any]) -> Decimal:
    """A department split's budget is already a monthly amount."""
    return to_decimal(split["budget_amount"], "budget_amount")
