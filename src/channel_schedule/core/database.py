"""
SQLite database operations for Channel Schedule
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from .config import get_data_dir

# Database schema version for migrations
SCHEMA_VERSION = 3


def get_database_path() -> Path:
    """Get the path to the SQLite database file.

    CHANNEL_DATABASE_PATH overrides the default location in the data directory.
    """
    override = os.environ.get("CHANNEL_DATABASE_PATH")
    if override:
        return Path(override).expanduser()
    return get_data_dir() / "channel_schedule.db"


@contextmanager
def get_db_connection(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup and concurrency support."""
    path = db_path or get_database_path()
    conn = sqlite3.connect(path, timeout=30.0)
    conn.row_factory = sqlite3.Row  # Enable dict-like access

    # WAL mode allows reads during writes
    conn.execute("PRAGMA journal_mode=WAL")

    try:
        yield conn
    finally:
        conn.close()


def _add_missing_columns(conn: sqlite3.Connection, columns: list[tuple[str, str]]) -> None:
    existing = {
        row["name"] for row in conn.execute("PRAGMA table_info(broadcast_slots)")
    }
    for column, ddl in columns:
        if column not in existing:
            conn.execute(f"ALTER TABLE broadcast_slots ADD COLUMN {column} {ddl}")


def migrate_database(conn: sqlite3.Connection, current_version: int) -> None:
    """Migrate database from current_version to latest schema."""
    if current_version < 2:
        # v1 -> v2: recording metadata on broadcast slots
        _add_missing_columns(
            conn,
            [
                ("recording_url", "TEXT"),
                ("recording_status", "TEXT"),
                ("recording_duration", "REAL"),
            ],
        )
        logger.info("Migrated database schema to v2 (recording metadata)")

    if current_version < 3:
        # v2 -> v3: DJ who went live on the broadcast token
        _add_missing_columns(conn, [("live_dj_name", "TEXT")])
        logger.info("Migrated database schema to v3 (live DJ name)")


def init_database(db_path: Optional[Path] = None) -> None:
    """Initialize the database with required tables."""
    path = db_path or get_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS broadcast_slots (
                id TEXT PRIMARY KEY,
                station_id TEXT NOT NULL,
                show_name TEXT NOT NULL,
                dj_name TEXT,
                dj_slots TEXT, -- JSON array of DJ slots (venue shows)
                start_time TEXT NOT NULL, -- ISO local datetime
                end_time TEXT NOT NULL,
                broadcast_token TEXT NOT NULL UNIQUE,
                token_expires_at TEXT NOT NULL,
                created_at TEXT NOT NULL,
                created_by TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'scheduled',
                broadcast_type TEXT, -- 'venue' | 'remote' (NULL for legacy venue rows)
                venue_slug TEXT
            )
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_broadcast_slots_station_start
            ON broadcast_slots (station_id, start_time)
        """)

        cursor = conn.execute("SELECT MAX(version) AS version FROM schema_version")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 1

        if current_version < SCHEMA_VERSION:
            migrate_database(conn, current_version)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )

        conn.commit()
        logger.debug(f"Database ready at {path} (schema v{SCHEMA_VERSION})")
