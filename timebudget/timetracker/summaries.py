"""
Monthly Cost Summaries

Pre-aggregates closed months into one row per (project, user, month)
with total seconds and total cost at the entries' locked rates. Only
months strictly before the current month are summarised, and existing
rows are never rewritten, so running it repeatedly is safe.
"""

import sqlite3
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional, Tuple

from timebudget.core import get_logger, transaction
from timebudget.core.dates import parse_date
from timebudget.core.money import CENT, ZERO, to_decimal
from timebudget.timetracker.costing import entry_cost

logger = get_logger("timebudget.timetracker.summaries")

ProgressCallback = Callable[[int, int], None]


def generate_monthly_summaries(
    conn: sqlite3.Connection,
    current_date: Optional[date] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """Summarise every month before *current_date*'s month. Returns rows inserted."""
    current_date = current_date or date.today()
    cutoff = date(current_date.year, current_date.month, 1)

    with transaction(conn):
        existing = {
            (r["project_id"], r["user_id"], r["month"])
            for r in conn.execute(
                "SELECT project_id, user_id, month FROM monthly_cost_summaries"
            ).fetchall()
        }

        totals: Dict[Tuple[int, int, str], Dict[str, Any]] = defaultdict(
            lambda: {"seconds": 0, "cost": ZERO}
        )
        rows = conn.execute(
            "SELECT project_id, user_id, date, duration_seconds, rate_per_hour "
            "FROM time_entries WHERE date < ?",
            (cutoff.isoformat(),),
        ).fetchall()
        for r in rows:
            d = parse_date(r["date"])
            key = (r["project_id"], r["user_id"], date(d.year, d.month, 1).isoformat())
            totals[key]["seconds"] += r["duration_seconds"]
            totals[key]["cost"] += entry_cost(r["rate_per_hour"], r["duration_seconds"])

        pending = []
        for idx, (key, agg) in enumerate(sorted(totals.items()), start=1):
            if on_progress:
                on_progress(idx, len(totals))
            if key in existing:
                continue
            project_id, user_id, month = key
            pending.append((
                project_id, user_id, month, agg["seconds"],
                str(agg["cost"].quantize(CENT, rounding=ROUND_HALF_UP)),
            ))

        conn.executemany(
            """
            INSERT INTO monthly_cost_summaries
                (project_id, user_id, month, total_duration_seconds, total_cost)
            VALUES (?, ?, ?, ?, ?)
            """,
            pending,
        )

    logger.info("Monthly summaries: %d new row(s) before %s", len(pending), cutoff)
    return len(pending)


def list_monthly_summaries(
    conn: sqlite3.Connection, *, project_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    sql = """
        SELECT s.*, u.name AS user_name, p.name AS project_name
        FROM monthly_cost_summaries s
        JOIN users u ON u.id = s.user_id
        JOIN projects p ON p.id = s.project_id
    """
    params: list = []
    if project_id:
        sql += " WHERE s.project_id = ?"
        params.append(project_id)
    sql += " ORDER BY s.month, p.name, u.name"

    result = []
    for r in conn.execute(sql, params).fetchall():
        d = dict(r)
        d["total_cost"] = to_decimal(d["total_cost"], "total_cost")
        result.append(d)
    return result
