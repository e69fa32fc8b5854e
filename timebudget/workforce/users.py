"""
User Management

Users log time and belong to exactly one department. ``rate_per_hour``
is the user's *current* rate; time entries copy it at creation, so
changing it here never alters the cost of entries already logged.
"""

import sqlite3
from decimal import Decimal
from typing import Any, Dict, List, Optional

from timebudget.core import get_logger, transaction
from timebudget.core.errors import ConflictError, NotFoundError, ValidationError
from timebudget.core.money import as_storage, to_decimal

logger = get_logger("timebudget.workforce.users")

VALID_ROLES = ("admin", "user")


def _parse_rate(rate: Any) -> Optional[Decimal]:
    if rate is None:
        return None
    value = to_decimal(rate, "rate_per_hour")
    if value < 0:
        raise ValidationError("rate_per_hour cannot be negative", details={"field": "rate_per_hour"})
    return value


def create_user(
    conn: sqlite3.Connection,
    name: str,
    email: str,
    *,
    department_id: int,
    rate_per_hour: Any = None,
    role: str = "user",
) -> int:
    """Create a user. Returns user id."""
    if not name or not email:
        raise ValidationError("name and email are required")
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")

    rate = _parse_rate(rate_per_hour)

    dept = conn.execute("SELECT id FROM departments WHERE id = ?", (department_id,)).fetchone()
    if not dept:
        raise NotFoundError(f"Department {department_id} not found")

    dup = conn.execute(
        "SELECT id FROM users WHERE LOWER(TRIM(email)) = LOWER(TRIM(?))", (email,)
    ).fetchone()
    if dup:
        raise ConflictError(f"A user with email {email} already exists")

    with transaction(conn):
        cursor = conn.execute(
            "INSERT INTO users (name, email, role, department_id, rate_per_hour) "
            "VALUES (?, ?, ?, ?, ?)",
            (name, email.strip(), role, department_id, as_storage(rate)),
        )
    return cursor.lastrowid


def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        """
        SELECT u.*, d.name AS department_name
        FROM users u
        JOIN departments d ON d.id = u.department_id
        WHERE u.id = ?
        """,
        (user_id,),
    ).fetchone()
    return dict(row) if row else None


def list_users(
    conn: sqlite3.Connection, *, department_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    sql = """
        SELECT u.*, d.name AS department_name
        FROM users u
        JOIN departments d ON d.id = u.department_id
    """
    params: list = []
    if department_id:
        sql += " WHERE u.department_id = ?"
        params.append(department_id)
    sql += " ORDER BY u.name"
    return [dict(r) for r in conn.execute(sql, params).fetchall()]


def set_user_rate(conn: sqlite3.Connection, user_id: int, rate_per_hour: Any) -> Decimal:
    """Change a user's current hourly rate. Existing entries keep their snapshot."""
    rate = _parse_rate(rate_per_hour)
    if rate is None:
        raise ValidationError("rate_per_hour is required", details={"field": "rate_per_hour"})

    with transaction(conn):
        cursor = conn.execute(
            "UPDATE users SET rate_per_hour = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (as_storage(rate), user_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"User {user_id} not found")

    logger.info("Rate for user %s set to %s", user_id, rate)
    return rate
