"""
Project Registry

Minimal project records that time entries and ledger rows hang off.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from timebudget.core import transaction
from timebudget.core.errors import NotFoundError, ValidationError


def create_project(conn: sqlite3.Connection, name: str) -> int:
    """Create a project. Returns project id."""
    if not name or not name.strip():
        raise ValidationError("Project name is required", details={"field": "name"})
    with transaction(conn):
        cursor = conn.execute("INSERT INTO projects (name) VALUES (?)", (name.strip(),))
    return cursor.lastrowid


def get_project(conn: sqlite3.Connection, project_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT id, name, created_at FROM projects WHERE id = ?", (project_id,)
    ).fetchone()
    return dict(row) if row else None


def require_project(conn: sqlite3.Connection, project_id: int) -> Dict[str, Any]:
    """Like get_project but raises NotFoundError."""
    project = get_project(conn, project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


def list_projects(
    conn: sqlite3.Connection, *, search: Optional[str] = None
) -> List[Dict[str, Any]]:
    sql = "SELECT id, name, created_at FROM projects"
    params: list = []
    if search:
        sql += " WHERE name LIKE ?"
        params.append(f"%{search}%")
    sql += " ORDER BY name"
    return [dict(r) for r in conn.execute(sql, params).fetchall()]
