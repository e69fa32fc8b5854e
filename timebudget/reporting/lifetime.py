"""
Lifetime budget view and per-project financial overview.

Lifetime figures ignore month filters: every one-off injection plus the
recurring funding accrued so far, against every entry the project has
ever logged, each at its locked rate.
"""

import sqlite3
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from timebudget.core import get_logger, transaction
from timebudget.core.dates import month_key, parse_date
from timebudget.core.money import ZERO, money, percentage
from timebudget.projects.ledger import get_lifetime_budget, list_budget_injections
from timebudget.projects.projects import require_project
from timebudget.projects.recurring import projected_recurring_budget
from timebudget.timetracker.costing import entry_cost

logger = get_logger("timebudget.reporting.lifetime")


def _entry_costs(conn: sqlite3.Connection, project_id: int):
    rows = conn.execute(
        "SELECT date, duration_seconds, rate_per_hour FROM time_entries WHERE project_id = ?",
        (project_id,),
    ).fetchall()
    for r in rows:
        yield parse_date(r["date"]), entry_cost(r["rate_per_hour"], r["duration_seconds"])


def get_lifetime_summary(
    conn: sqlite3.Connection, project_id: int, as_of: Optional[date] = None
) -> Dict[str, Any]:
    """Total budget vs. total spend for a project.

    The budget is every one-off injection plus each recurring month up to
    and including the month of *as_of* (default today).

    Returns a dict with camelCase keys; money rounded to cents,
    ``usedPercentage`` 0 when the budget is 0.
    """
    with transaction(conn):
        project = require_project(conn, project_id)
        total_budget = get_lifetime_budget(conn, project_id)
        total_budget += projected_recurring_budget(conn, project_id, as_of)
        total_spend = sum((cost for _, cost in _entry_costs(conn, project_id)), ZERO)

    leftover = total_budget - total_spend
    logger.debug("Lifetime project %s: budget %s spend %s", project_id, total_budget, total_spend)

    return {
        "project": {"id": project["id"], "name": project["name"]},
        "totalBudget": money(total_budget),
        "totalSpend": money(total_spend),
        "leftover": money(leftover),
        "usedPercentage": percentage(total_spend, total_budget),
    }


def get_financial_overview(conn: sqlite3.Connection, project_id: int) -> Dict[str, Any]:
    """Injection history plus spend per calendar month, oldest first."""
    with transaction(conn):
        project = require_project(conn, project_id)
        injections = list_budget_injections(conn, project_id)
        monthly: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry_date, cost in _entry_costs(conn, project_id):
            monthly[month_key(entry_date)] += cost

    return {
        "projectId": project["id"],
        "projectName": project["name"],
        "budgetInjections": [
            {
                "id": inj["id"],
                "amount": money(inj["amount"]),
                "date": inj["date"],
                "description": inj["description"] or "",
            }
            for inj in injections
        ],
        "costOverTime": [
            {"month": month, "cost": money(cost)} for month, cost in sorted(monthly.items())
        ],
    }
