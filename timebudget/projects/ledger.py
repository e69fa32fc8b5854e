"""
Budget Ledger Business Logic

Pure business logic for project funding. No Flask imports — used by
both CLI and API layers.

Functions are organized by record type:
  - One-off budget injections (lifetime budget)
  - Recurring budget definitions (monthly retainer fee)
  - Department budget splits (per-department monthly budget)

Every write validates first, then runs inside ``transaction`` so a
failure leaves no partial change behind. Amounts are stored as decimal
text and returned as ``Decimal``.
"""

import sqlite3
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from timebudget.core import get_logger, transaction
from timebudget.core.dates import parse_date
from timebudget.core.errors import ConflictError, NotFoundError, ValidationError
from timebudget.core.money import ZERO, as_storage, positive_amount, to_decimal
from timebudget.projects.projects import require_project
from timebudget.projects.recurring import VALID_FREQUENCIES

logger = get_logger("timebudget.projects.ledger")


def _decimal_fields(row: sqlite3.Row, *fields: str) -> Dict[str, Any]:
    d = dict(row)
    for f in fields:
        if d.get(f) is not None:
            d[f] = to_decimal(d[f], f)
    return d


# ---------------------------------------------------------------------------
# One-off budget injections
# ---------------------------------------------------------------------------


def get_budget_injection(conn: sqlite3.Connection, injection_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM budget_injections WHERE id = ?", (injection_id,)
    ).fetchone()
    return _decimal_fields(row, "amount") if row else None


def list_budget_injections(
    conn: sqlite3.Connection, project_id: int
) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM budget_injections WHERE project_id = ? ORDER BY date, id",
        (project_id,),
    ).fetchall()
    return [_decimal_fields(r, "amount") for r in rows]


def create_budget_injection(
    conn: sqlite3.Connection,
    *,
    project_id: int,
    injection_date: Any,
    amount: Any,
    description: Optional[str] = None,
) -> int:
    """Record a one-off funding event. Returns injection id."""
    value = positive_amount(amount)
    when = parse_date(injection_date, "date")
    require_project(conn, project_id)

    with transaction(conn):
        cursor = conn.execute(
            "INSERT INTO budget_injections (project_id, date, amount, description) "
            "VALUES (?, ?, ?, ?)",
            (project_id, when.isoformat(), as_storage(value), description),
        )

    logger.info("Budget injection %s: project %s +%s on %s", cursor.lastrowid, project_id, value, when)
    return cursor.lastrowid


def update_budget_injection(
    conn: sqlite3.Connection,
    injection_id: int,
    *,
    injection_date: Any = None,
    amount: Any = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Update the supplied fields of an injection. Returns the updated row."""
    existing = get_budget_injection(conn, injection_id)
    if existing is None:
        raise NotFoundError(f"Budget injection {injection_id} not found")

    value = positive_amount(amount) if amount is not None else existing["amount"]
    when = parse_date(injection_date, "date", required=False) or existing["date"]
    if isinstance(when, date):
        when = when.isoformat()
    text = description if description is not None else existing["description"]

    with transaction(conn):
        conn.execute(
            """
            UPDATE budget_injections
            SET date=?, amount=?, description=?, updated_at=CURRENT_TIMESTAMP
            WHERE id=?
            """,
            (when, as_storage(value), text, injection_id),
        )

    logger.info("Budget injection %s updated", injection_id)
    return get_budget_injection(conn, injection_id)


def delete_budget_injection(conn: sqlite3.Connection, injection_id: int) -> None:
    with transaction(conn):
        cursor = conn.execute("DELETE FROM budget_injections WHERE id=?", (injection_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Budget injection {injection_id} not found")
    logger.info("Budget injection %s deleted", injection_id)


def get_lifetime_budget(conn: sqlite3.Connection, project_id: int) -> Decimal:
    """Sum of every one-off injection for the project."""
    rows = conn.execute(
        "SELECT amount FROM budget_injections WHERE project_id = ?", (project_id,)
    ).fetchall()
    return sum((to_decimal(r["amount"]) for r in rows), ZERO)


# ---------------------------------------------------------------------------
# Recurring budget definitions
# ---------------------------------------------------------------------------


def _validate_recurring(amount: Any, frequency: str, start_date: Any, end_date: Any):
    value = positive_amount(amount)
    if frequency not in VALID_FREQUENCIES:
        raise ValidationError(
            f"frequency must be one of: {', '.join(VALID_FREQUENCIES)}",
            details={"field": "frequency"},
        )
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date", required=False)
    if end is not None and end < start:
        raise ValidationError(
            "end_date must be on or after start_date", details={"field": "end_date"}
        )
    return value, start, end


def get_recurring_budget(conn: sqlite3.Connection, recurring_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM recurring_budget_injections WHERE id = ?", (recurring_id,)
    ).fetchone()
    if not row:
        return None
    d = _decimal_fields(row, "amount")
    d["is_active"] = bool(d["is_active"])
    return d


def list_recurring_budgets(
    conn: sqlite3.Connection, project_id: int, *, include_inactive: bool = True
) -> List[Dict[str, Any]]:
    sql = "SELECT id FROM recurring_budget_injections WHERE project_id = ?"
    if not include_inactive:
        sql += " AND is_active = 1"
    sql += " ORDER BY start_date, id"
    ids = [r["id"] for r in conn.execute(sql, (project_id,)).fetchall()]
    return [get_recurring_budget(conn, i) for i in ids]


def create_recurring_budget(
    conn: sqlite3.Connection,
    *,
    project_id: int,
    amount: Any,
    frequency: str,
    start_date: Any,
    end_date: Any = None,
    description: Optional[str] = None,
) -> int:
    """Create an active recurring definition. Returns its id.

    Raises ConflictError if the project already has an active one;
    deactivate it first.
    """
    value, start, end = _validate_recurring(amount, frequency, start_date, end_date)
    require_project(conn, project_id)

    active = conn.execute(
        "SELECT id FROM recurring_budget_injections WHERE project_id = ? AND is_active = 1",
        (project_id,),
    ).fetchone()
    if active:
        raise ConflictError(
            f"Project {project_id} already has an active recurring budget",
            details={"activeId": active["id"]},
        )

    try:
        with transaction(conn):
            cursor = conn.execute(
                """
                INSERT INTO recurring_budget_injections
                    (project_id, amount, frequency, start_date, end_date, description, is_active)
                VALUES (?, ?, ?, ?, ?, ?, 1)
                """,
                (project_id, as_storage(value), frequency, start.isoformat(),
                 end.isoformat() if end else None, description),
            )
    except sqlite3.IntegrityError as exc:
        # lost a race against another writer on uq_recurring_single_active
        raise ConflictError(f"Project {project_id} already has an active recurring budget") from exc

    logger.info(
        "Recurring budget %s: project %s %s %s from %s",
        cursor.lastrowid, project_id, value, frequency, start,
    )
    return cursor.lastrowid


def update_recurring_budget(
    conn: sqlite3.Connection,
    recurring_id: int,
    *,
    amount: Any,
    frequency: str,
    start_date: Any,
    end_date: Any = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Replace amount, frequency, window and description in one write."""
    if get_recurring_budget(conn, recurring_id) is None:
        raise NotFoundError(f"Recurring budget {recurring_id} not found")

    value, start, end = _validate_recurring(amount, frequency, start_date, end_date)

    with transaction(conn):
        conn.execute(
            """
            UPDATE recurring_budget_injections
            SET amount=?, frequency=?, start_date=?, end_date=?, description=?,
                updated_at=CURRENT_TIMESTAMP
            WHERE id=?
            """,
            (as_storage(value), frequency, start.isoformat(),
             end.isoformat() if end else None, description, recurring_id),
        )

    logger.info("Recurring budget %s updated", recurring_id)
    return get_recurring_budget(conn, recurring_id)


def deactivate_recurring_budget(
    conn: sqlite3.Connection, recurring_id: int, *, on: Any = None
) -> Dict[str, Any]:
    """Stop a definition projecting into months after *on* (default today).

    The row is kept; months that began on or before *on* keep their fee.
    Deactivating an already inactive definition changes nothing.
    """
    existing = get_recurring_budget(conn, recurring_id)
    if existing is None:
        raise NotFoundError(f"Recurring budget {recurring_id} not found")
    if not existing["is_active"]:
        return existing

    when = parse_date(on, "on", required=False) or date.today()

    with transaction(conn):
        conn.execute(
            """
            UPDATE recurring_budget_injections
            SET is_active=0, deactivated_on=?, updated_at=CURRENT_TIMESTAMP
            WHERE id=?
            """,
            (when.isoformat(), recurring_id),
        )

    logger.info("Recurring budget %s deactivated on %s", recurring_id, when)
    return get_recurring_budget(conn, recurring_id)


# ---------------------------------------------------------------------------
# Department budget splits
# ---------------------------------------------------------------------------


def get_department_split(conn: sqlite3.Connection, split_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        """
        SELECT s.*, d.name AS department_name, d.color AS department_color
        FROM department_budget_splits s
        JOIN departments d ON d.id = s.department_id
        WHERE s.id = ?
        """,
        (split_id,),
    ).fetchone()
    return _decimal_fields(row, "budget_amount") if row else None


def list_department_splits(
    conn: sqlite3.Connection, project_id: int
) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT s.*, d.name AS department_name, d.color AS department_color
        FROM department_budget_splits s
        JOIN departments d ON d.id = s.department_id
        WHERE s.project_id = ?
        ORDER BY d.name
        """,
        (project_id,),
    ).fetchall()
    return [_decimal_fields(r, "budget_amount") for r in rows]


def create_department_split(
    conn: sqlite3.Connection,
    *,
    project_id: int,
    department_id: int,
    budget_amount: Any,
) -> int:
    """Allocate a monthly budget to one department of a project."""
    value = positive_amount(budget_amount, "budget_amount")
    require_project(conn, project_id)
    dept = conn.execute("SELECT id FROM departments WHERE id = ?", (department_id,)).fetchone()
    if not dept:
        raise NotFoundError(f"Department {department_id} not found")

    try:
        with transaction(conn):
            cursor = conn.execute(
                "INSERT INTO department_budget_splits (project_id, department_id, budget_amount) "
                "VALUES (?, ?, ?)",
                (project_id, department_id, as_storage(value)),
            )
    except sqlite3.IntegrityError as exc:
        raise ConflictError(
            f"Department {department_id} already has a budget split for project {project_id}"
        ) from exc

    logger.info("Department split %s: project %s dept %s = %s",
                cursor.lastrowid, project_id, department_id, value)
    return cursor.lastrowid


def update_department_split(
    conn: sqlite3.Connection, split_id: int, *, budget_amount: Any
) -> Dict[str, Any]:
    value = positive_amount(budget_amount, "budget_amount")
    with transaction(conn):
        cursor = conn.execute(
            "UPDATE department_budget_splits SET budget_amount=?, updated_at=CURRENT_TIMESTAMP "
            "WHERE id=?",
            (as_storage(value), split_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Department split {split_id} not found")
    return get_department_split(conn, split_id)


def delete_department_split(conn: sqlite3.Connection, split_id: int) -> None:
    with transaction(conn):
        cursor = conn.execute("DELETE FROM department_budget_splits WHERE id=?", (split_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Department split {split_id} not found")
    logger.info("Department split %s deleted", split_id)
