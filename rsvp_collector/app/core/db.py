"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager that commits on success
and rolls back on failure (``get_cursor``) and ``init_db``, which
applies the schema migrations.  SQLite is used through the standard
library driver as a lightweight embedded database.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Tuple, Union

PathLike = Union[str, Path]

# Seconds a connection waits on a locked database before giving up.
BUSY_TIMEOUT = 5.0

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS rsvps (
            id TEXT PRIMARY KEY,
            guest_name TEXT NOT NULL,
            guest_count INTEGER NOT NULL DEFAULT 1,
            notes TEXT NOT NULL DEFAULT '',
            -- JSON array of contribution strings
            contributions TEXT NOT NULL DEFAULT '[]',
            created_at INTEGER NOT NULL,
            updated_at INTEGER
        );

        CREATE INDEX IF NOT EXISTS idx_rsvps_created_at ON rsvps(created_at);
        """,
    ),
]


def get_connection(db_path: PathLike) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.
    """
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: PathLike) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor inside a transaction and close the connection on exit.

    The transaction is committed when the block finishes and rolled
    back if it raises.
    """
    conn = get_connection(db_path)
    try:
        cursor = conn.cursor()
        yield cursor
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: PathLike) -> None:
    """Create the database file if needed and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS``.  To change the schema, append a migration with an
    incremented version number.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with get_cursor(db_path) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
