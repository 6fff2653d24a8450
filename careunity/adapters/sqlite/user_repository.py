"""SQLite adapter implementing UserRepository protocol."""

import sqlite3
import time

from careunity.adapters.sqlite.base_repository import SQLiteBaseRepository
from careunity.domain.exceptions import ValidationError


class SQLiteUserRepository(SQLiteBaseRepository):
    """SQLite implementation of UserRepository."""

    def add(self, username: str) -> int:
        """Register a user.

        Args:
            username: Unique, non-empty user name.

        Returns:
            The new user's id.

        Raises:
            ValidationError: If the name is empty or already taken.
        """
        if not username or not username.strip():
            raise ValidationError("username cannot be empty")

        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (username, created_at) VALUES (?, ?)",
                    (username.strip(), time.time()),
                )
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"User '{username}' already exists") from e
        return int(cursor.lastrowid)

    def exists(self, user_id: int) -> bool:
        """Check whether a user id is registered."""
        conn = self._get_connection()
        row = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
        return row is not None
