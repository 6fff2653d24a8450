"""Sync queue service for recording and managing deferred mutations.

This module holds the queue-side business logic: validated creation,
lifecycle-checked status updates, all-or-nothing batch submission and the
per-user aggregates shown in the UI. Delivery lives in replay.py.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from careunity.core.sync.transitions import ensure_transition
from careunity.domain.entities import (
    CreateSyncOperation,
    SyncOperation,
    SyncOperationResponse,
    SyncOperationStatus,
    SyncStatusSummary,
    UpdateSyncOperation,
)
from careunity.domain.exceptions import SyncOperationNotFoundError, ValidationError
from careunity.domain.value_objects import validate_user_id
from careunity.ports.repositories import SyncOperationRepository

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


class SyncQueueService:
    """Service for the offline sync queue.

    Every read and write is scoped to a user: an operation owned by someone
    else behaves exactly like a missing one.
    """

    def __init__(
        self,
        repository: SyncOperationRepository,
        *,
        max_retries: int = 5,
        id_factory: Callable[[], str] = _new_id,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Storage for sync operations.
            max_retries: Failed operations below this retry count are retried.
            id_factory: Generates operation ids.
            clock_ms: Returns the current time in epoch milliseconds.
        """
        self._repository = repository
        self._max_retries = max_retries
        self._id_factory = id_factory
        self._clock_ms = clock_ms

    def create(self, request: CreateSyncOperation) -> SyncOperation:
        """Record a new pending operation.

        Args:
            request: Validated create input.

        Returns:
            The stored operation (status=pending, retries=0).

        Raises:
            UserNotFoundError: If the owning user does not exist.
        """
        operation = SyncOperation.new(
            request, operation_id=self._id_factory(), timestamp=self._clock_ms()
        )
        self._repository.add(operation)
        logger.debug(
            "Queued %s %s as %s for user %s",
            operation.method.value,
            operation.url,
            operation.id,
            operation.user_id,
        )
        return operation

    def submit_batch(
        self,
        user_id: int,
        items: list[CreateSyncOperation | dict[str, Any]],
    ) -> list[SyncOperationResponse]:
        """Record several operations at once.

        All items are validated before anything is written, then all rows are
        inserted in one transaction: the batch is stored entirely or not at all.

        Args:
            user_id: Owner of every operation in the batch.
            items: Create inputs, as requests or camelCase dicts.

        Returns:
            One {id, status} per input, in input order.

        Raises:
            ValidationError: If any item is invalid (message names its index).
            UserNotFoundError: If the user does not exist.
        """
        owner = _checked_user(user_id)
        if not isinstance(items, list):
            raise ValidationError("operations must be a list")

        requests: list[CreateSyncOperation] = []
        for index, item in enumerate(items):
            try:
                if isinstance(item, CreateSyncOperation):
                    requests.append(replace(item, user_id=owner))
                else:
                    requests.append(CreateSyncOperation.from_dict(item, user_id=owner))
            except ValidationError as e:
                raise ValidationError(f"operations[{index}]: {e.message}") from e

        now = self._clock_ms()
        operations = [
            SyncOperation.new(request, operation_id=self._id_factory(), timestamp=now)
            for request in requests
        ]
        self._repository.add_many(operations)
        logger.debug("Queued batch of %d operations for user %s", len(operations), owner)
        return [operation.to_response() for operation in operations]

    def get(self, operation_id: str, user_id: int) -> SyncOperation:
        """Fetch one of the user's operations.

        Raises:
            SyncOperationNotFoundError: If missing or owned by another user.
        """
        operation = self._repository.get(operation_id)
        if operation is None or operation.user_id != user_id:
            raise SyncOperationNotFoundError(operation_id)
        return operation

    def list_operations(
        self,
        user_id: int,
        status: SyncOperationStatus | str | None = None,
    ) -> list[SyncOperation]:
        """List the user's operations, newest first.

        Args:
            user_id: Owning user.
            status: Optional status filter.
        """
        parsed = SyncOperationStatus.parse(status) if status is not None else None
        return self._repository.list_for_user(user_id, parsed)

    def update_status(
        self,
        operation_id: str,
        user_id: int,
        update: UpdateSyncOperation,
    ) -> SyncOperation:
        """Apply a status change.

        Args:
            operation_id: Operation to change.
            user_id: Owning user.
            update: Target status plus optional error message and retry count.

        Returns:
            The updated operation.

        Raises:
            SyncOperationNotFoundError: If missing or owned by another user.
            InvalidTransitionError: If the lifecycle forbids the change.
        """
        operation = self.get(operation_id, user_id)
        ensure_transition(operation.status, update.status)

        updated = operation.with_status(
            update.status,
            error_message=update.error_message,
            retries=update.retries,
        )
        self._repository.save(updated)
        logger.debug(
            "Operation %s: %s -> %s",
            operation_id,
            operation.status.value,
            updated.status.value,
        )
        return updated

    def delete(self, operation_id: str, user_id: int) -> None:
        """Delete one of the user's operations.

        Raises:
            SyncOperationNotFoundError: If missing or owned by another user.
        """
        self.get(operation_id, user_id)
        self._repository.delete(operation_id)

    def status(self, user_id: int) -> SyncStatusSummary:
        """Compute pending/error counts and last sync time for the user."""
        return SyncStatusSummary.from_operations(self._repository.list_for_user(user_id))

    def clear_completed(self, user_id: int) -> list[str]:
        """Delete the user's completed operations.

        Returns:
            Ids of the deleted operations.
        """
        completed = self._repository.list_for_user(user_id, SyncOperationStatus.COMPLETED)
        deleted = [op.id for op in completed if self._repository.delete(op.id)]
        if deleted:
            logger.info("Cleared %d completed operations for user %s", len(deleted), user_id)
        return deleted

    def retry_failed(self, user_id: int) -> list[str]:
        """Move failed operations that still have retries left back to pending.

        Returns:
            Ids of the operations moved to pending.
        """
        failed = self._repository.list_for_user(user_id, SyncOperationStatus.ERROR)
        retried: list[str] = []
        for operation in failed:
            if operation.retries >= self._max_retries:
                logger.debug(
                    "Operation %s exhausted its %d retries", operation.id, self._max_retries
                )
                continue
            ensure_transition(operation.status, SyncOperationStatus.PENDING)
            self._repository.save(operation.with_status(SyncOperationStatus.PENDING))
            retried.append(operation.id)
        return retried


def _checked_user(user_id: int) -> int:
    try:
        return validate_user_id(user_id)
    except ValueError as e:
        raise ValidationError(str(e)) from e
