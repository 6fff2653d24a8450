"""SQLite adapters for careunity storage."""

from .base_repository import SQLiteBaseRepository
from .initializer import SqliteDatabaseInitializer
from .schema import check_schema_version, init_database
from .sync_operation_repository import SQLiteSyncOperationRepository
from .user_repository import SQLiteUserRepository

__all__ = [
    "SQLiteBaseRepository",
    "SQLiteSyncOperationRepository",
    "SQLiteUserRepository",
    "SqliteDatabaseInitializer",
    "init_database",
    "check_schema_version",
]
