"""
Shared test fixtures for timebudget.

Provides an in-memory database with all schemas, a get_db patch, CLI
runner, Flask test client, and seed data fixtures for isolated testing.
"""

import sqlite3
from contextlib import contextmanager
from unittest.mock import patch

import pytest

from timebudget.core.db import apply_schemas

# Modules that bind get_db at import time
_GET_DB_TARGETS = [
    "timebudget.core.db.get_db",
    "timebudget.core.get_db",
    "timebudget.api.projects.get_db",
    "timebudget.api.ledger.get_db",
    "timebudget.api.timetracker.get_db",
    "timebudget.api.workforce.get_db",
]


@pytest.fixture
def memory_db():
    """Provide an in-memory SQLite database with ALL schemas applied in FK order."""
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row
    apply_schemas(conn)
    yield conn
    conn.close()


@pytest.fixture
def mock_db(memory_db):
    """Patch get_db everywhere to return the in-memory database."""

    @contextmanager
    def _get_db(readonly=False):
        yield memory_db

    patches = [patch(target, _get_db) for target in _GET_DB_TARGETS]
    for p in patches:
        p.start()
    yield memory_db
    for p in reversed(patches):
        p.stop()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def client(mock_db):
    """Flask test client backed by the in-memory database."""
    from timebudget.api import create_app

    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def seed_department(memory_db):
    """Insert an Engineering department. Returns department id."""
    memory_db.execute(
        "INSERT INTO departments (id, name, color) VALUES (1, 'Engineering', 'primary')"
    )
    memory_db.commit()
    return 1


@pytest.fixture
def seed_user(memory_db, seed_department):
    """Insert a user at 25/hour in Engineering. Returns user id."""
    memory_db.execute(
        "INSERT INTO users (id, name, email, department_id, rate_per_hour) "
        "VALUES (1, 'Ada Lovelace', 'ada@example.com', ?, '25')",
        (seed_department,),
    )
    memory_db.commit()
    return 1


@pytest.fixture
def seed_project(memory_db):
    """Insert a minimal project for FK references. Returns project id."""
    memory_db.execute("INSERT INTO projects (id, name) VALUES (1, 'Apollo')")
    memory_db.commit()
    return 1
