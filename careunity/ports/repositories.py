"""Repository port interfaces for data persistence.

These protocols define abstract interfaces for storing and retrieving domain entities.
Implementations should be in adapters/ layer.
"""

from typing import Protocol

from careunity.domain.entities import SyncOperation, SyncOperationStatus


class SyncOperationRepository(Protocol):
    """Repository for storing and retrieving deferred mutations."""

    def add(self, operation: SyncOperation) -> None:
        """Store a new operation.

        Args:
            operation: The operation to store.

        Raises:
            UserNotFoundError: If the owning user does not exist.
        """
        ...

    def add_many(self, operations: list[SyncOperation]) -> None:
        """Store several operations atomically.

        Either every operation is stored or none is.

        Args:
            operations: Operations to store, in order.

        Raises:
            UserNotFoundError: If an owning user does not exist.
        """
        ...

    def get(self, operation_id: str) -> SyncOperation | None:
        """Retrieve an operation by its ID.

        Args:
            operation_id: The unique identifier for the operation.

        Returns:
            The operation if found, None otherwise.
        """
        ...

    def save(self, operation: SyncOperation) -> None:
        """Persist status, error_message and retries of an existing operation.

        Args:
            operation: Operation carrying the new values.
        """
        ...

    def claim(self, operation_id: str) -> bool:
        """Atomically move an operation from pending to processing.

        Args:
            operation_id: Operation to claim.

        Returns:
            True if this caller claimed it, False if it was no longer pending.
        """
        ...

    def delete(self, operation_id: str) -> bool:
        """Delete an operation by ID.

        Args:
            operation_id: The operation identifier to delete.

        Returns:
            True if a row was deleted.
        """
        ...

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
            Matching operations, newest first unless oldest_first is set.
        """
        ...


class UserRepository(Protocol):
    """Repository for the users that own sync operations."""

    def add(self, username: str) -> int:
        """Register a user.

        Args:
            username: Unique user name.

        Returns:
            The new user's id.
        """
        ...

    def exists(self, user_id: int) -> bool:
        """Check whether a user id is registered."""
        ...
