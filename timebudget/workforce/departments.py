"""
Department Management

Departments group users for reporting. Each carries a presentation
color, a session-length threshold, and a list of default time-entry
descriptions offered to its members.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from timebudget.core import get_logger, transaction
from timebudget.core.errors import NotFoundError, ValidationError

logger = get_logger("timebudget.workforce.departments")

VALID_COLORS = ["info", "error", "primary", "secondary", "success", "warning", "neutral"]


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


def create_department(
    conn: sqlite3.Connection,
    name: str,
    *,
    color: str = "info",
    max_session_minutes: int = 480,
) -> int:
    """Create a department. Returns department id."""
    if not name or not name.strip():
        raise ValidationError("Department name is required", details={"field": "name"})
    if color not in VALID_COLORS:
        raise ValidationError(
            f"color must be one of: {', '.join(VALID_COLORS)}", details={"field": "color"}
        )

    with transaction(conn):
        cursor = conn.execute(
            "INSERT INTO departments (name, color, max_session_minutes) VALUES (?, ?, ?)",
            (name.strip(), color, int(max_session_minutes)),
        )
    return cursor.lastrowid


def get_department(conn: sqlite3.Connection, department_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM departments WHERE id = ?", (department_id,)
    ).fetchone()
    return dict(row) if row else None


def list_departments(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute("SELECT * FROM departments ORDER BY name").fetchall()
    return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# Default descriptions
# ---------------------------------------------------------------------------


def list_default_descriptions(
    conn: sqlite3.Connection, department_id: int
) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT id, description FROM department_default_descriptions "
        "WHERE department_id = ? ORDER BY id",
        (department_id,),
    ).fetchall()
    return [dict(r) for r in rows]


def replace_default_descriptions(
    conn: sqlite3.Connection, department_id: int, descriptions: List[str]
) -> int:
    """Replace a department's default descriptions in one transaction.

    Either every old row is gone and every new row is present, or
    nothing changed. Blank descriptions are dropped. Returns the number
    of descriptions stored.
    """
    if get_department(conn, department_id) is None:
        raise NotFoundError(f"Department {department_id} not found")

    cleaned = [d.strip() for d in descriptions if d and d.strip()]

    with transaction(conn):
        conn.execute(
            "DELETE FROM department_default_descriptions WHERE department_id = ?",
            (department_id,),
        )
        conn.executemany(
            "INSERT INTO department_default_descriptions (department_id, description) "
            "VALUES (?, ?)",
            [(department_id, d) for d in cleaned],
        )

    logger.info("Replaced default descriptions for department %s (%d)", department_id, len(cleaned))
    return len(cleaned)


def get_user_defaults(conn: sqlite3.Connection, user_id: int) -> Dict[str, Any]:
    """Default descriptions and session threshold for a user's department."""
    row = conn.execute(
        """
        SELECT u.department_id, d.max_session_minutes
        FROM users u
        JOIN departments d ON d.id = u.department_id
        WHERE u.id = ?
        """,
        (user_id,),
    ).fetchone()
    if not row:
        raise NotFoundError(f"User {user_id} not found")

    return {
        "defaultDescriptions": list_default_descriptions(conn, row["department_id"]),
        "departmentThreshold": row["max_session_minutes"],
    }
