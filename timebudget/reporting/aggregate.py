"""
Aggregate time report: summed durations by project, user or overall,
optionally bucketed into day/week/month/year periods.
"""

import sqlite3
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from timebudget.core.dates import parse_date
from timebudget.core.errors import ValidationError

GROUP_BY = ("project", "user")
TIME_UNITS = ("day", "week", "month", "year", "none")


def period_start(d: date, time_unit: str) -> Optional[date]:
    """Truncate *d* to the start of its period (weeks start on Monday)."""
    if time_unit == "day":
        return d
    if time_unit == "week":
        return d - timedelta(days=d.weekday())
    if time_unit == "month":
        return d.replace(day=1)
    if time_unit == "year":
        return d.replace(month=1, day=1)
    return None


def _in_clause(column: str, ids: Iterable[int], conditions: list, params: list) -> None:
    ids = list(ids)
    if ids:
        conditions.append(f"{column} IN ({', '.join('?' for _ in ids)})")
        params.extend(ids)


def aggregate_time(
    conn: sqlite3.Connection,
    *,
    start_date: Any = None,
    end_date: Any = None,
    group_by: Optional[str] = None,
    time_unit: str = "day",
    user_ids: Optional[Iterable[int]] = None,
    project_ids: Optional[Iterable[int]] = None,
) -> List[Dict[str, Any]]:
    """Sum ``duration_seconds`` over the matching entries.

    Args:
        start_date, end_date: Inclusive date filters
        group_by: ``"project"``, ``"user"`` or None for one overall total
        time_unit: day, week, month, year, or ``"none"`` for no periods
        user_ids, project_ids: Restrict to these ids

    Returns:
        Rows of ``{"projectId"/"userId", "name", "timePeriod", "totalDuration"}``
        ordered by period then name. ``timePeriod`` is the ISO date the
        period starts on and is omitted when time_unit is ``"none"``.
    """
    if group_by is not None and group_by not in GROUP_BY:
        raise ValidationError("groupBy must be 'project' or 'user'", details={"field": "groupBy"})
    if time_unit not in TIME_UNITS:
        raise ValidationError(
            f"timeUnit must be one of: {', '.join(TIME_UNITS)}", details={"field": "timeUnit"}
        )

    start = parse_date(start_date, "startDate", required=False)
    end = parse_date(end_date, "endDate", required=False)
    if start and end and end < start:
        raise ValidationError("endDate must be on or after startDate", details={"field": "endDate"})

    sql = """
        SELECT t.date, t.duration_seconds, t.user_id, t.project_id,
               u.name AS user_name, p.name AS project_name
        FROM time_entries t
        JOIN users u ON u.id = t.user_id
        JOIN projects p ON p.id = t.project_id
    """
    conditions: list = []
    params: list = []
    if start:
        conditions.append("t.date >= ?")
        params.append(start.isoformat())
    if end:
        conditions.append("t.date <= ?")
        params.append(end.isoformat())
    _in_clause("t.user_id", user_ids or (), conditions, params)
    _in_clause("t.project_id", project_ids or (), conditions, params)
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    totals: Dict[tuple, int] = defaultdict(int)
    names: Dict[tuple, str] = {}
    for r in conn.execute(sql, params).fetchall():
        period = period_start(parse_date(r["date"]), time_unit)
        if group_by == "project":
            ident, name = r["project_id"], r["project_name"]
        elif group_by == "user":
            ident, name = r["user_id"], r["user_name"]
        else:
            ident, name = None, None
        key = (period, ident)
        totals[key] += r["duration_seconds"]
        names[key] = name

    id_key = {"project": "projectId", "user": "userId"}.get(group_by)
    results = []
    for (period, ident), seconds in totals.items():
        row: Dict[str, Any] = {}
        if id_key:
            row[id_key] = ident
            row["name"] = names[(period, ident)]
        if period is not None:
            row["timePeriod"] = period.isoformat()
        row["totalDuration"] = seconds
        results.append(row)

    results.sort(key=lambda row: (row.get("timePeriod", ""), row.get("name") or ""))
    return results
