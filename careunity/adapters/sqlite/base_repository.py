"""Base class for SQLite repository adapters.

Provides connection management, cross-thread access, transactions and the
context manager protocol shared by every SQLite adapter in careunity.
"""

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Self


class SQLiteBaseRepository:
    """Base class providing SQLite connection management.

    Subclasses get:
    - Lazy, lock-guarded connection creation
    - Rows returned as sqlite3.Row (access by column name)
    - Foreign key enforcement (sync_operations.user_id -> users.id)
    - A transaction() context manager for multi-statement writes
    - Context manager protocol (__enter__/__exit__)

    Example:
        class UserRepository(SQLiteBaseRepository):
            def count(self) -> int:
                conn = self._get_connection()
                return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
    """

    def __init__(self, db_path: Path, *, foreign_keys: bool = True) -> None:
        """Initialize the repository.

        Args:
            db_path: Path to SQLite database file.
            foreign_keys: Whether to enforce foreign key constraints.
        """
        self.db_path = db_path
        self._foreign_keys = foreign_keys
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection, creating one if needed.

        Uses double-checked locking so two threads never open separate
        connections for the same repository.

        Returns:
            SQLite connection object.
        """
        if self._conn is None:
            with self._conn_lock:
                if self._conn is None:
                    conn = sqlite3.connect(self.db_path, check_same_thread=False)
                    conn.row_factory = sqlite3.Row
                    if self._foreign_keys:
                        conn.execute("PRAGMA foreign_keys = ON")
                    self._conn = conn
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements in a single transaction.

        Commits when the block exits normally and rolls back when it raises.

        Yields:
            The open connection.
        """
        conn = self._get_connection()
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()

    def close(self) -> None:
        """Close the database connection if open.

        Safe to call multiple times.
        """
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        """Exit context manager, closing the database connection."""
        self.close()
        return False
