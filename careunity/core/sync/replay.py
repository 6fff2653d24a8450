"""Replay engine for delivering queued mutations to the server.

Operations are replayed oldest first. Each one is claimed with a conditional
pending -> processing update before it is sent, so a record is delivered by
at most one replayer at a time. Failures are recorded on the operation and
never abort the pass.
"""

import logging
import sqlite3

import httpx

from careunity.core.sync.sync_service import SyncQueueService
from careunity.core.sync.transitions import ensure_transition
from careunity.domain.entities import (
    ReplayErrorType,
    ReplayResult,
    SyncOperation,
    SyncOperationStatus,
)
from careunity.ports.repositories import SyncOperationRepository
from careunity.ports.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


def classify_replay_error(exception: Exception) -> ReplayErrorType:
    """Classify an exception raised while delivering an operation.

    Args:
        exception: The exception to classify.

    Returns:
        ReplayErrorType indicating the category of error.
    """
    if isinstance(exception, httpx.TransportError):
        return ReplayErrorType.NETWORK_ERROR

    if isinstance(exception, sqlite3.Error):
        return ReplayErrorType.DATABASE_ERROR

    return ReplayErrorType.UNKNOWN


def classify_response(response: httpx.Response) -> ReplayErrorType:
    """Classify a server response.

    Returns:
        NONE for 2xx, CONFLICT for 409, HTTP_ERROR otherwise.
    """
    if response.is_success:
        return ReplayErrorType.NONE
    if response.status_code == 409:
        return ReplayErrorType.CONFLICT
    return ReplayErrorType.HTTP_ERROR


class ReplayEngine:
    """Delivers pending operations through a transport."""

    def __init__(
        self,
        repository: SyncOperationRepository,
        transport: Transport,
        queue: SyncQueueService,
    ) -> None:
        """Initialize the engine.

        Args:
            repository: Storage for sync operations.
            transport: Sends requests to the server.
            queue: Queue service used for retrying failed operations.
        """
        self._repository = repository
        self._transport = transport
        self._queue = queue

    async def replay_pending(self, user_id: int) -> ReplayResult:
        """Deliver the user's pending operations, oldest first.

        Args:
            user_id: Owning user.

        Returns:
            Counts of delivered, failed and total operations.
        """
        pending = self._repository.list_for_user(
            user_id, SyncOperationStatus.PENDING, oldest_first=True
        )
        result = ReplayResult(total=len(pending))
        if not pending:
            return result

        logger.debug("Replaying %d pending operations for user %s", len(pending), user_id)
        for operation in pending:
            if not self._repository.claim(operation.id):
                logger.debug("Operation %s was claimed by another replayer", operation.id)
                result.skipped += 1
                continue

            processing = operation.with_status(SyncOperationStatus.PROCESSING)
            error_type, message = await self._deliver(processing)
            if error_type == ReplayErrorType.NONE:
                self._finish(processing, SyncOperationStatus.COMPLETED)
                result.processed += 1
            else:
                self._finish(processing, SyncOperationStatus.ERROR, message)
                result.failed += 1
                result.errors[operation.id] = error_type

        if result.failed:
            logger.warning(
                "Replay for user %s: %d delivered, %d failed",
                user_id,
                result.processed,
                result.failed,
            )
        return result

    async def retry_and_replay(self, user_id: int) -> ReplayResult:
        """Move retryable failures back to pending, then replay."""
        self._queue.retry_failed(user_id)
        return await self.replay_pending(user_id)

    async def _deliver(self, operation: SyncOperation) -> tuple[ReplayErrorType, str | None]:
        # Operation headers replace defaults case-insensitively
        headers = httpx.Headers(DEFAULT_HEADERS)
        headers.update(operation.headers)
        try:
            request = self._transport.build_request(
                operation.method.value,
                operation.url,
                headers=dict(headers),
                content=operation.body,
            )
            response = await self._transport.send(request)
        except Exception as e:
            error_type = classify_replay_error(e)
            logger.warning(
                "Delivery of %s %s failed (%s): %s",
                operation.method.value,
                operation.url,
                error_type.value,
                e,
            )
            return error_type, str(e) or type(e).__name__

        error_type = classify_response(response)
        if error_type == ReplayErrorType.NONE:
            logger.debug("Delivered %s -> %d", operation.id, response.status_code)
            return error_type, None
        if error_type == ReplayErrorType.CONFLICT:
            return error_type, f"Conflict: server responded with 409: {response.reason_phrase}"
        return (
            error_type,
            f"Server responded with {response.status_code}: {response.reason_phrase}",
        )

    def _finish(
        self,
        operation: SyncOperation,
        status: SyncOperationStatus,
        error_message: str | None = None,
    ) -> None:
        ensure_transition(operation.status, status)
        retries = operation.retries + 1 if status == SyncOperationStatus.ERROR else None
        self._repository.save(
            operation.with_status(status, error_message=error_message, retries=retries)
        )
