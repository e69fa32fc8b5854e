"""
Monthly Budget Breakdown

Turns one project-month of time entries into a Department -> User ->
Entry tree with per-week hours, spend totals, and leftover/utilisation
figures against the month's retainer fee.

All arithmetic is Decimal and unrounded; ``to_dict`` is the only place
values are rounded (money and hours to 2 places, percentages to int).

No Flask imports — used by both CLI and API layers.
"""

import sqlite3
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from timebudget.core import get_logger, transaction
from timebudget.core.dates import month_bounds, parse_date, validate_year_month
from timebudget.core.money import ZERO, hours, money, percentage, to_decimal
from timebudget.projects.ledger import list_department_splits
from timebudget.projects.projects import require_project
from timebudget.projects.recurring import department_retainer_fee, project_retainer_fee
from timebudget.timetracker.costing import WEEK_BUCKETS, entry_cost, entry_hours, week_bucket

logger = get_logger("timebudget.reporting.breakdown")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class BudgetFigures:
    """Leftover and utilisation of a spend total against a monthly fee."""

    retainer_fee: Decimal
    total_spend: Decimal

    @property
    def leftover(self) -> Decimal:
        return self.retainer_fee - self.total_spend

    @property
    def used_percentage(self) -> int:
        return percentage(self.total_spend, self.retainer_fee)

    @property
    def remaining_percentage(self) -> int:
        return percentage(self.leftover, self.retainer_fee)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "retainerFee": money(self.retainer_fee),
            "totalSpend": money(self.total_spend),
            "leftover": money(self.leftover),
            "usedPercentage": self.used_percentage,
            "remainingPercentage": self.remaining_percentage,
        }


@dataclass
class EntryView:
    id: int
    description: Optional[str]
    date: str
    duration_seconds: int
    rate_per_hour: Decimal
    cost: Decimal
    week_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "date": self.date,
            "durationSeconds": self.duration_seconds,
            "ratePerHour": money(self.rate_per_hour),
            "cost": money(self.cost),
            "weekNumber": self.week_number,
        }


@dataclass
class UserBreakdown:
    id: int
    name: str
    rate_per_hour: Optional[Decimal]
    total_hours: Decimal = ZERO
    total_spend: Decimal = ZERO
    weekly_hours: List[Decimal] = field(default_factory=lambda: [ZERO] * WEEK_BUCKETS)
    entries: List[EntryView] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ratePerHour": money(self.rate_per_hour) if self.rate_per_hour is not None else None,
            "totalHours": hours(self.total_hours),
            "totalSpend": money(self.total_spend),
            "weeklyHours": [hours(h) for h in self.weekly_hours],
            "timeEntries": [e.to_dict() for e in self.entries],
        }


@dataclass
class DepartmentBreakdown:
    id: int
    name: str
    color: str
    total_hours: Decimal = ZERO
    total_spend: Decimal = ZERO
    users: Dict[int, UserBreakdown] = field(default_factory=dict)
    budget: Optional[BudgetFigures] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "totalHours": hours(self.total_hours),
            "totalSpend": money(self.total_spend),
            "budget": self.budget.to_dict() if self.budget else None,
            "users": [u.to_dict() for u in self.users.values()],
        }


@dataclass
class MonthlyBreakdown:
    project: Dict[str, Any]
    year: int
    month: int
    month_data: BudgetFigures
    total_hours: Decimal
    departments: List[DepartmentBreakdown]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": {"id": self.project["id"], "name": self.project["name"]},
            "year": self.year,
            "month": self.month,
            "monthData": self.month_data.to_dict(),
            "totalHours": hours(self.total_hours),
            "departments": [d.to_dict() for d in self.departments],
        }


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------


def accumulate_entries(rows: Iterable[Mapping[str, Any]]) -> Dict[int, DepartmentBreakdown]:
    """Fold joined entry rows into department -> user buckets.

    Each row needs: id, date, duration_seconds, description, rate_per_hour
    (the entry's snapshot), user_id, user_name, user_rate, department_id,
    department_name, department_color.
    """
    departments: Dict[int, DepartmentBreakdown] = {}

    for r in rows:
        dept = departments.get(r["department_id"])
        if dept is None:
            dept = departments[r["department_id"]] = DepartmentBreakdown(
                id=r["department_id"],
                name=r["department_name"],
                color=r["department_color"],
            )

        user = dept.users.get(r["user_id"])
        if user is None:
            current_rate = r["user_rate"]
            user = dept.users[r["user_id"]] = UserBreakdown(
                id=r["user_id"],
                name=r["user_name"],
                rate_per_hour=to_decimal(current_rate) if current_rate not in (None, "") else None,
            )

        entry_date = parse_date(r["date"])
        seconds = r["duration_seconds"]
        rate = to_decimal(r["rate_per_hour"], "rate_per_hour")
        cost = entry_cost(rate, seconds)
        hrs = entry_hours(seconds)
        bucket = week_bucket(entry_date)

        user.entries.append(EntryView(
            id=r["id"],
            description=r["description"],
            date=entry_date.isoformat(),
            duration_seconds=seconds,
            rate_per_hour=rate,
            cost=cost,
            week_number=bucket,
        ))
        user.total_hours += hrs
        user.total_spend += cost
        user.weekly_hours[bucket - 1] += hrs

        dept.total_hours += hrs
        dept.total_spend += cost

    return departments


def _drop_idle_users(dept: DepartmentBreakdown) -> None:
    # users with no logged hours are not reported
    dept.users = {uid: u for uid, u in dept.users.items() if u.total_hours > 0}


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


_ENTRY_SQL = """
    SELECT t.id, t.date, t.duration_seconds, t.description, t.rate_per_hour,
           u.id AS user_id, u.name AS user_name, u.rate_per_hour AS user_rate,
           d.id AS department_id, d.name AS department_name, d.color AS department_color
    FROM time_entries t
    JOIN users u ON u.id = t.user_id
    JOIN departments d ON d.id = u.department_id
    WHERE t.project_id = ? AND t.date >= ? AND t.date < ?
    ORDER BY d.name, u.name, t.date, t.id
"""


def get_monthly_breakdown(
    conn: sqlite3.Connection,
    project_id: int,
    year: Any,
    month: Any,
    *,
    include_idle_departments: bool = False,
) -> MonthlyBreakdown:
    """Build the department/user spend breakdown for one project-month.

    Args:
        project_id: Project to report on
        year, month: Target month (validated against the configured range)
        include_idle_departments: Also return departments that have a
            budget split for the project but logged no time this month

    Raises:
        ValidationError: year/month missing or out of range
        NotFoundError: unknown project
    """
    year, month = validate_year_month(year, month)
    month_start, month_end = month_bounds(year, month)

    # one snapshot for entries, fee and splits
    with transaction(conn):
        project = require_project(conn, project_id)
        rows = [
            dict(r) for r in conn.execute(
                _ENTRY_SQL, (project_id, month_start.isoformat(), month_end.isoformat())
            ).fetchall()
        ]
        retainer_fee = project_retainer_fee(conn, project_id, year, month)
        splits = list_department_splits(conn, project_id)

    departments = accumulate_entries(rows)

    for split in splits:
        dept = departments.get(split["department_id"])
        if dept is None:
            if not include_idle_departments:
                continue
            dept = departments[split["department_id"]] = DepartmentBreakdown(
                id=split["department_id"],
                name=split["department_name"],
                color=split["department_color"],
            )
        dept.budget = BudgetFigures(department_retainer_fee(split), dept.total_spend)

    total_spend = sum((d.total_spend for d in departments.values()), ZERO)
    total_hours = sum((d.total_hours for d in departments.values()), ZERO)

    for dept in departments.values():
        _drop_idle_users(dept)

    ordered = sorted(
        (d for d in departments.values() if d.users or d.budget is not None),
        key=lambda d: (d.name.lower(), d.id),
    )

    logger.debug(
        "Breakdown project %s %d-%02d: %d entries, fee %s, spend %s",
        project_id, year, month, len(rows), retainer_fee, total_spend,
    )

    return MonthlyBreakdown(
        project=project,
        year=year,
        month=month,
        month_data=BudgetFigures(retainer_fee, total_spend),
        total_hours=total_hours,
        departments=ordered,
    )
