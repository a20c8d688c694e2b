"""Database connection, schema migrations and housekeeping.

Timestamps are stored as 'YYYY-MM-DD HH:MM:SS' text in local time.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MIGRATION_FILES = (
    "migrations/001_init.sql",
    "migrations/002_products.sql",
    "migrations/003_exercises.sql",
    "migrations/004_exercise_videos.sql",
)
ONLINE_TIMEOUT = timedelta(seconds=15)


class RecordNotFound(LookupError):
    """Raised when a query that must return a row returns none."""


class MigrationError(RuntimeError):
    """Raised when a migration file cannot be read or applied."""


def connect(path: Union[str, Path]) -> sqlite3.Connection:
    """Open the database with rows addressable by column name."""
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    logger.info("[SQL] Connected to database")
    return conn


def run_migrations(
    conn: sqlite3.Connection,
    files: Optional[Iterable[Union[str, Path]]] = None,
) -> None:
    """Apply each SQL file in order, stopping at the first failure."""
    for file in MIGRATION_FILES if files is None else files:
        try:
            script = Path(file).read_text(encoding="utf-8")
        except OSError as exc:
            raise MigrationError(f"[SQL] Error reading migration {file}: {exc}") from exc
        try:
            conn.executescript(script)
        except sqlite3.Error as exc:
            raise MigrationError(f"[SQL] Error executing {file}: {exc}") from exc
        logger.info("[SQL] Migration %s applied", file)


def mark_stale_users_offline(
    conn: sqlite3.Connection,
    max_age: timedelta = ONLINE_TIMEOUT,
) -> int:
    """Mark online users not seen within max_age as offline; return how many."""
    cutoff = (datetime.now() - max_age).strftime(TIMESTAMP_FORMAT)
    with conn:
        cursor = conn.execute(
            "UPDATE users SET is_online = 0 WHERE is_online = 1 AND last_seen < ?",
            (cutoff,),
        )
    return cursor.rowcount