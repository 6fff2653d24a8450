"""SQLite database schema for the careunity offline store.

This module defines the database schema and initialization logic for the
.careunity/careunity.db database:
- users: Owners of sync operations (foreign key target only)
- sync_operations: Deferred mutations awaiting replay
- meta: System metadata (schema version, creation time)
"""

import sqlite3
from pathlib import Path

# Schema version for migrations
SCHEMA_VERSION = 1


def init_database(db_path: Path) -> None:
    """Initialize a new careunity database with complete schema.

    Creates all tables, indexes, and default metadata entries. Safe to run
    against an existing database; nothing is dropped.

    Args:
        db_path: Path to the SQLite database file (typically .careunity/careunity.db)

    Raises:
        sqlite3.Error: If database creation fails
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        _create_tables(conn)
        _create_indexes(conn)
        _insert_default_meta(conn)
        conn.commit()
    finally:
        conn.close()


def _create_tables(conn: sqlite3.Connection) -> None:
    """Create all database tables.

    Args:
        conn: Open SQLite connection
    """
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            created_at REAL NOT NULL
        )
    """)

    # headers is a JSON object; timestamp is epoch milliseconds
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS sync_operations (
            id TEXT PRIMARY KEY,
            url TEXT NOT NULL,
            method TEXT NOT NULL
                CHECK (method IN ('GET', 'POST', 'PUT', 'PATCH', 'DELETE')),
            body TEXT,
            headers TEXT,
            timestamp INTEGER NOT NULL,
            retries INTEGER NOT NULL DEFAULT 0 CHECK (retries >= 0),
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'processing', 'completed', 'error')),
            error_message TEXT,
            entity_type TEXT,
            entity_id TEXT,
            user_id INTEGER NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)


def _create_indexes(conn: sqlite3.Connection) -> None:
    """Create database indexes for query performance.

    Args:
        conn: Open SQLite connection
    """
    cursor = conn.cursor()

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_sync_operations_user_id
        ON sync_operations(user_id)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_sync_operations_status
        ON sync_operations(status)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_sync_operations_timestamp
        ON sync_operations(timestamp)
    """)


def _insert_default_meta(conn: sqlite3.Connection) -> None:
    """Insert default metadata entries.

    Args:
        conn: Open SQLite connection
    """
    conn.execute(
        """
        INSERT OR IGNORE INTO meta (key, value) VALUES
        ('schema_version', ?),
        ('created_at', datetime('now'))
    """,
        (str(SCHEMA_VERSION),),
    )


def check_schema_version(db_path: Path) -> int:
    """Check the schema version of an existing database.

    Args:
        db_path: Path to the SQLite database

    Returns:
        Schema version number (0 if database doesn't exist or has no version)
    """
    if not db_path.exists():
        return 0

    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM meta WHERE key = 'schema_version'")
        row = cursor.fetchone()
        return int(row[0]) if row else 0
    except sqlite3.Error:
        return 0
    finally:
        conn.close()
