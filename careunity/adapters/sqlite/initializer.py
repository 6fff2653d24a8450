"""SQLite database initializer adapter.

Implements the DatabaseInitializer port using SQLite.
"""

from pathlib import Path

from careunity.adapters.sqlite.schema import init_database as sqlite_init_database


class SqliteDatabaseInitializer:
    """SQLite implementation of DatabaseInitializer port."""

    def init_database(self, db_path: Path) -> None:
        """Create the careunity schema at db_path.

        Args:
            db_path: Path to the SQLite database file.

        Raises:
            sqlite3.Error: If database creation fails.
        """
        sqlite_init_database(db_path)
