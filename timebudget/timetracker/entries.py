"""
Time Entry Business Logic

Time entry CRUD with rate snapshots. No Flask imports — used by both
CLI and API layers.

When an entry is created the submitting user's current
``rate_per_hour`` is copied onto it inside the same transaction. No code
path ever re-reads the user's rate for an existing entry, so a later
raise or cut leaves historical costs untouched.

Editing rules:
  - Only the owner or an admin may update or delete an entry.
  - Non-admins may only log, edit or delete entries dated today
    (``timetracker.same_day_only`` in config.yaml).
"""

import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional

from timebudget.core import get_config_value, get_logger, transaction
from timebudget.core.dates import parse_date
from timebudget.core.errors import ForbiddenError, NotFoundError, ValidationError
from timebudget.core.money import to_decimal
from timebudget.projects.projects import require_project

logger = get_logger("timebudget.timetracker.entries")


def _same_day_only() -> bool:
    return bool(get_config_value("timetracker", "same_day_only", default=True))


def _validate_duration(duration_seconds: Any) -> int:
    not_integer = ValidationError(
        "duration_seconds must be an integer", details={"field": "duration_seconds"}
    )
    if isinstance(duration_seconds, bool):
        raise not_integer
    if isinstance(duration_seconds, float) and not duration_seconds.is_integer():
        raise not_integer
    try:
        seconds = int(duration_seconds)
    except (TypeError, ValueError):
        raise not_integer
    if seconds <= 0:
        raise ValidationError("duration_seconds must be positive", details={"field": "duration_seconds"})
    return seconds


def _entry_row(row: sqlite3.Row) -> Dict[str, Any]:
    d = dict(row)
    d["rate_per_hour"] = to_decimal(d["rate_per_hour"], "rate_per_hour")
    return d


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_time_entry(conn: sqlite3.Connection, entry_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        """
        SELECT t.*, p.name AS project_name
        FROM time_entries t
        JOIN projects p ON p.id = t.project_id
        WHERE t.id = ?
        """,
        (entry_id,),
    ).fetchone()
    return _entry_row(row) if row else None


def list_time_entries(
    conn: sqlite3.Connection,
    *,
    user_id: Optional[int] = None,
    project_id: Optional[int] = None,
    start_date: Any = None,
    end_date: Any = None,
) -> List[Dict[str, Any]]:
    """List entries with optional filters; date bounds are inclusive."""
    sql = """
        SELECT t.*, p.name AS project_name
        FROM time_entries t
        JOIN projects p ON p.id = t.project_id
    """
    conditions = []
    params: list = []
    if user_id:
        conditions.append("t.user_id = ?")
        params.append(user_id)
    if project_id:
        conditions.append("t.project_id = ?")
        params.append(project_id)
    start = parse_date(start_date, "start_date", required=False)
    if start:
        conditions.append("t.date >= ?")
        params.append(start.isoformat())
    end = parse_date(end_date, "end_date", required=False)
    if end:
        conditions.append("t.date <= ?")
        params.append(end.isoformat())
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    sql += " ORDER BY t.date DESC, t.id DESC"

    return [_entry_row(r) for r in conn.execute(sql, params).fetchall()]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_time_entry(
    conn: sqlite3.Connection,
    *,
    user_id: int,
    project_id: int,
    entry_date: Any,
    duration_seconds: Any,
    description: Optional[str] = None,
    today: Optional[date] = None,
    admin_override: bool = False,
) -> int:
    """Log time and freeze the user's current rate onto the entry.

    Raises NotFoundError for an unknown user or project and
    ValidationError if the user has no rate.
    """
    seconds = _validate_duration(duration_seconds)
    when = parse_date(entry_date, "date")
    today = today or date.today()
    if _same_day_only() and not admin_override and when != today:
        raise ValidationError(
            f"Time entries can only be submitted for today ({today.isoformat()})",
            details={"field": "date"},
        )

    with transaction(conn):
        user = conn.execute(
            "SELECT id, rate_per_hour FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        if user["rate_per_hour"] is None or str(user["rate_per_hour"]).strip() == "":
            raise ValidationError(
                f"User {user_id} has no hourly rate; cannot log time",
                details={"field": "rate_per_hour"},
            )
        rate = to_decimal(user["rate_per_hour"], "rate_per_hour")
        require_project(conn, project_id)

        cursor = conn.execute(
            """
            INSERT INTO time_entries
                (user_id, project_id, date, duration_seconds, description, rate_per_hour)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, project_id, when.isoformat(), seconds, description, str(rate)),
        )

    logger.debug("Time entry %s: user %s project %s %ss @ %s",
                 cursor.lastrowid, user_id, project_id, seconds, rate)
    return cursor.lastrowid


def _check_edit_rights(
    entry: Dict[str, Any], acting_user_id: int, is_admin: bool, today: date, verb: str
) -> None:
    if entry["user_id"] != acting_user_id and not is_admin:
        raise ForbiddenError(f"You cannot {verb} this time entry")
    if is_admin or not _same_day_only():
        return
    if parse_date(entry["date"]) != today:
        raise ValidationError(f"You can only {verb} time entries created today")


def update_time_entry(
    conn: sqlite3.Connection,
    entry_id: int,
    *,
    acting_user_id: int,
    is_admin: bool = False,
    today: Optional[date] = None,
    project_id: Optional[int] = None,
    entry_date: Any = None,
    duration_seconds: Any = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Update the supplied fields. The rate snapshot is never changed."""
    today = today or date.today()
    entry = get_time_entry(conn, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    _check_edit_rights(entry, acting_user_id, is_admin, today, "edit")

    fields: Dict[str, Any] = {}
    if entry_date is not None:
        when = parse_date(entry_date, "date")
        if _same_day_only() and not is_admin and when != today:
            raise ValidationError(
                f"Time entries can only be updated to today's date ({today.isoformat()})",
                details={"field": "date"},
            )
        fields["date"] = when.isoformat()
    if duration_seconds is not None:
        fields["duration_seconds"] = _validate_duration(duration_seconds)
    if description is not None:
        fields["description"] = description
    if project_id is not None:
        require_project(conn, project_id)
        fields["project_id"] = project_id

    if fields:
        assignments = ", ".join(f"{k}=?" for k in fields)
        with transaction(conn):
            conn.execute(
                f"UPDATE time_entries SET {assignments}, updated_at=CURRENT_TIMESTAMP WHERE id=?",
                (*fields.values(), entry_id),
            )
        logger.debug("Time entry %s updated: %s", entry_id, sorted(fields))

    return get_time_entry(conn, entry_id)


def delete_time_entry(
    conn: sqlite3.Connection,
    entry_id: int,
    *,
    acting_user_id: int,
    is_admin: bool = False,
    today: Optional[date] = None,
) -> None:
    today = today or date.today()
    entry = get_time_entry(conn, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    _check_edit_rights(entry, acting_user_id, is_admin, today, "delete")

    with transaction(conn):
        conn.execute("DELETE FROM time_entries WHERE id=?", (entry_id,))
    logger.debug("Time entry %s deleted", entry_id)
