"""SQLite database connection + schema initialization.

Kept deliberately small:
- SQLite file stored locally (persists between restarts)
- schema created on first use
- foreign keys enabled
"""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


DEFAULT_DB_FILENAME = "tempo.db"


@dataclass(frozen=True)
class DBConfig:
    """Database configuration."""

    db_path: Path


def default_db_path() -> Path:
    """Resolve DB path.

    Uses `TEMPO_DB` env var if set, else stores under `database/`.
    """

    override = os.getenv("TEMPO_DB")
    if override:
        return Path(override).expanduser().resolve()

    return (Path(__file__).resolve().parent / DEFAULT_DB_FILENAME).resolve()


def get_connection(config: Optional[DBConfig] = None) -> sqlite3.Connection:
    """Create a SQLite connection with row access by column name."""

    db_path = (config.db_path if config else default_db_path())
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    logger.debug("Opened database %s", db_path)
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create all required tables if they do not exist."""

    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS instructors (
            instructor_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL DEFAULT '',
            phone TEXT NOT NULL DEFAULT '',
            class_types_json TEXT NOT NULL DEFAULT '[]',
            block_size INTEGER NOT NULL DEFAULT 2 CHECK (block_size > 0),
            min_classes INTEGER NOT NULL DEFAULT 2 CHECK (min_classes > 0),
            max_classes INTEGER NOT NULL DEFAULT 10 CHECK (max_classes > 0),
            availability_json TEXT NOT NULL DEFAULT '[]',
            preferences_json TEXT NOT NULL DEFAULT '{}',
            unavailability_json TEXT NOT NULL DEFAULT '{}'
        );

        -- -----------------------------
        -- Working schedule (one per DB)
        -- -----------------------------

        -- Only offered classes are stored; value is 'TBD' or an instructor id
        CREATE TABLE IF NOT EXISTS schedule_cells (
            day TEXT NOT NULL,
            class_type TEXT NOT NULL,
            time TEXT NOT NULL,
            value TEXT NOT NULL,
            PRIMARY KEY (day, class_type, time)
        );

        CREATE TABLE IF NOT EXISTS locked_assignments (
            day TEXT NOT NULL,
            class_type TEXT NOT NULL,
            time TEXT NOT NULL,
            instructor_id TEXT NOT NULL,
            PRIMARY KEY (day, class_type, time)
        );

        -- -----------------------------
        -- Generated schedules (saved)
        -- -----------------------------

        CREATE TABLE IF NOT EXISTS saved_schedules (
            schedule_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            settings_json TEXT NOT NULL DEFAULT '{}',
            metrics_json TEXT NOT NULL DEFAULT '{}'
        );

        CREATE TABLE IF NOT EXISTS saved_schedule_entries (
            entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
            schedule_id TEXT NOT NULL,
            day TEXT NOT NULL,
            class_type TEXT NOT NULL,
            time TEXT NOT NULL,
            value TEXT NOT NULL,
            locked INTEGER NOT NULL DEFAULT 0 CHECK (locked IN (0,1)),
            FOREIGN KEY (schedule_id) REFERENCES saved_schedules(schedule_id) ON DELETE CASCADE
        );

        CREATE UNIQUE INDEX IF NOT EXISTS uq_saved_entries_identity
        ON saved_schedule_entries(schedule_id, day, class_type, time);

        CREATE INDEX IF NOT EXISTS idx_saved_entries_schedule ON saved_schedule_entries(schedule_id);
        """
    )
    conn.commit()


class db_session:
    """Context manager that opens a connection and ensures schema exists."""

    def __init__(self, config: Optional[DBConfig] = None):
        self._config = config
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> sqlite3.Connection:
        self._conn = get_connection(self._config)
        init_db(self._conn)
        return self._conn

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._conn is not None
        if exc_type is None:
            self._conn.commit()
        else:
            self._conn.rollback()
        self._conn.close()
        self._conn = None
