"""
Database access for timebudget.

Provides connection management, transactions, and schema
migration. Single source of truth for all database operations.
"""

import sqlite3
from contextlib import contextmanager
from itertools import count
from pathlib import Path
from typing import Generator

from timebudget.core.config import TB_PATHS


def get_db_path() -> Path:
    """Get database path from config."""
    return TB_PATHS.database


@contextmanager
def get_db(readonly: bool = False) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Enables foreign keys and Row factory automatically.

    Args:
        readonly: Open in read-only mode (useful for queries)

    Yields:
        sqlite3.Connection with Row factory enabled
    """
    db_path = get_db_path()

    if readonly:
        uri = f"file:{db_path}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))

    try:
        conn.execute("PRAGMA foreign_keys = ON")
        if not readonly:
            conn.execute("PRAGMA journal_mode = WAL")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


_savepoint_ids = count(1)


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """
    Run a block atomically on *conn*.

    Uses a SAVEPOINT so the block nests inside an already-open
    transaction. On success the savepoint is released; only the outermost
    block commits. On any exception every change made inside the block is
    rolled back before the exception propagates.

    Also used for reports: all SELECTs inside the block read from one
    consistent snapshot.
    """
    name = f"tb_sp_{next(_savepoint_ids)}"
    outermost = not conn.in_transaction
    conn.execute(f"SAVEPOINT {name}")
    try:
        yield conn
    except BaseException:
        conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
        conn.execute(f"RELEASE SAVEPOINT {name}")
        raise
    conn.execute(f"RELEASE SAVEPOINT {name}")
    if outermost and conn.in_transaction:
        conn.commit()


# Schema dependency order — foreign keys flow downhill through this list.
SCHEMA_ORDER = [
    "workforce",
    "projects",
    "timetracker",
]


def apply_schemas(conn: sqlite3.Connection) -> None:
    """Apply every module's schema.sql to *conn* in SCHEMA_ORDER."""
    from timebudget.core.logging import get_logger

    logger = get_logger("timebudget.migrate")
    package_dir = Path(__file__).parent.parent

    for module_name in SCHEMA_ORDER:
        schema_file = package_dir / module_name / "schema.sql"
        if schema_file.exists():
            logger.info(f"Applying schema: {module_name}/schema.sql")
            conn.executescript(schema_file.read_text(encoding="utf-8"))
        else:
            logger.debug(f"No schema for module: {module_name}")


def migrate_all():
    """
    Run all module schemas in dependency order.

    Each module's schema.sql uses CREATE TABLE IF NOT EXISTS,
    making this safe to run repeatedly (idempotent).
    """
    from timebudget.core.logging import get_logger

    logger = get_logger("timebudget.migrate")

    with get_db() as conn:
        apply_schemas(conn)
        conn.commit()
        logger.info("All schemas applied successfully")
