"""SQLite adapter implementing SyncOperationRepository protocol."""

import json
import sqlite3

from careunity.adapters.sqlite.base_repository import SQLiteBaseRepository
from careunity.domain.entities import SyncOperation, SyncOperationStatus
from careunity.domain.exceptions import UserNotFoundError
from careunity.domain.value_objects import HttpMethod

_COLUMNS = (
    "id, url, method, body, headers, timestamp, retries, status, "
    "error_message, entity_type, entity_id, user_id"
)


class SQLiteSyncOperationRepository(SQLiteBaseRepository):
    """SQLite implementation of SyncOperationRepository."""

    def add(self, operation: SyncOperation) -> None:
        """Store a new operation.

        Args:
            operation: The operation to store.

        Raises:
            UserNotFoundError: If operation.user_id is not a registered user.
        """
        self.add_many([operation])

    def add_many(self, operations: list[SyncOperation]) -> None:
        """Store several operations in one transaction.

        Args:
            operations: Operations to store, in order.

        Raises:
            UserNotFoundError: If any owning user is missing; nothing is stored.
        """
        with self.transaction() as conn:
            for operation in operations:
                try:
                    conn.execute(
                        f"INSERT INTO sync_operations ({_COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        _to_row(operation),
                    )
                except sqlite3.IntegrityError as e:
                    if "FOREIGN KEY" in str(e).upper():
                        raise UserNotFoundError(operation.user_id) from e
                    raise

    def get(self, operation_id: str) -> SyncOperation | None:
        """Retrieve an operation by its ID.

        Args:
            operation_id: The unique identifier for the operation.

        Returns:
            The operation if found, None otherwise.
        """
        conn = self._get_connection()
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM sync_operations WHERE id = ?",
            (operation_id,),
        ).fetchone()
        return _from_row(row) if row else None

    def save(self, operation: SyncOperation) -> None:
        """Persist status, error_message and retries of an existing operation.

        Identity fields (id, url, method, body, headers, timestamp, user) are
        never rewritten.

        Args:
            operation: Operation carrying the new values.
        """
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE sync_operations
                SET status = ?, error_message = ?, retries = ?
                WHERE id = ?
                """,
                (
                    operation.status.value,
                    operation.error_message,
                    operation.retries,
                    operation.id,
                ),
            )

    def claim(self, operation_id: str) -> bool:
        """Atomically move an operation from pending to processing.

        The status check and the update are one statement, so two replayers
        cannot both claim the same operation.

        Args:
            operation_id: Operation to claim.

        Returns:
            True if this caller claimed it.
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE sync_operations
                SET status = 'processing', error_message = NULL
                WHERE id = ? AND status = 'pending'
                """,
                (operation_id,),
            )
        return cursor.rowcount == 1

    def delete(self, operation_id: str) -> bool:
        """Delete an operation by ID.

        Args:
            operation_id: The operation identifier to delete.

        Returns:
            True if a row was deleted.
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM sync_operations WHERE id = ?",
                (operation_id,),
            )
        return cursor.rowcount == 1

    def list_for_user(
        self,
        user_id: int,
        status: SyncOperationStatus | None = None,
        oldest_first: bool = False,
    ) -> list[SyncOperation]:
        """List a user's operations, optionally filtered by status.

        Args:
            user_id: Owning user.
            status: Optional status filter.
            oldest_first: Order by ascending timestamp instead of descending.

        Returns:
            Matching operations.
        """
        conn = self._get_connection()
        query = f"SELECT {_COLUMNS} FROM sync_operations WHERE user_id = ?"
        params: list[object] = [user_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        # rowid breaks ties between operations created in the same millisecond
        direction = "ASC" if oldest_first else "DESC"
        query += f" ORDER BY timestamp {direction}, rowid {direction}"

        rows = conn.execute(query, params).fetchall()
        return [_from_row(row) for row in rows]


def _to_row(operation: SyncOperation) -> tuple:
    return (
        operation.id,
        operation.url,
        operation.method.value,
        operation.body,
        json.dumps(operation.headers) if operation.headers else None,
        operation.timestamp,
        operation.retries,
        operation.status.value,
        operation.error_message,
        operation.entity_type,
        operation.entity_id,
        operation.user_id,
    )


def _from_row(row: sqlite3.Row) -> SyncOperation:
    return SyncOperation(
        id=row["id"],
        url=row["url"],
        method=HttpMethod(row["method"]),
        body=row["body"],
        headers=json.loads(row["headers"]) if row["headers"] else {},
        timestamp=row["timestamp"],
        retries=row["retries"],
        status=SyncOperationStatus(row["status"]),
        error_message=row["error_message"],
        entity_type=row["entity_type"],
        entity_id=row["entity_id"],
        user_id=row["user_id"],
    )
