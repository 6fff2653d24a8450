"""Tests for the sync queue service.

The repository is mocked; SQLite-backed behavior is covered in
tests/integration/test_sync_operation_repository.py.
"""

from itertools import count
from unittest.mock import MagicMock

import pytest

from careunity.core.sync import SyncQueueService
from careunity.domain.entities import (
    CreateSyncOperation,
    SyncOperationStatus,
    UpdateSyncOperation,
)
from careunity.domain.exceptions import (
    InvalidTransitionError,
    SyncOperationNotFoundError,
    ValidationError,
)


@pytest.fixture
def repository() -> MagicMock:
    repo = MagicMock()
    repo.get.return_value = None
    repo.list_for_user.return_value = []
    repo.delete.return_value = True
    return repo


@pytest.fixture
def service(repository: MagicMock) -> SyncQueueService:
    ids = count(1)
    return SyncQueueService(
        repository,
        max_retries=3,
        id_factory=lambda: f"id-{next(ids)}",
        clock_ms=lambda: 1_700_000_000_000,
    )


class TestCreate:
    """Tests for SyncQueueService.create."""

    def test_create_returns_pending_operation(
        self, service: SyncQueueService, repository: MagicMock
    ) -> None:
        """A new operation is pending with zero retries and a fresh id."""
        request = CreateSyncOperation(
            url="/api/service-users/5",
            method="PATCH",
            user_id=1,
            body='{"fullName":"A"}',
        )

        operation = service.create(request)

        assert operation.id == "id-1"
        assert operation.status is SyncOperationStatus.PENDING
        assert operation.retries == 0
        assert operation.timestamp == 1_700_000_000_000
        repository.add.assert_called_once_with(operation)

    def test_ids_are_unique(self, service: SyncQueueService) -> None:
        request = CreateSyncOperation(url="/api/visits", method="POST", user_id=1)
        first = service.create(request)
        second = service.create(request)
        assert first.id != second.id

    def test_default_id_factory_generates_uuids(self, repository: MagicMock) -> None:
        service = SyncQueueService(repository)
        request = CreateSyncOperation(url="/api/visits", method="POST", user_id=1)
        operation = service.create(request)
        assert len(operation.id) == 36
        assert operation.id.count("-") == 4


class TestSubmitBatch:
    """Tests for SyncQueueService.submit_batch."""

    def test_returns_one_response_per_item_in_order(
        self, service: SyncQueueService, repository: MagicMock
    ) -> None:
        items = [
            {"url": f"/api/visits/{n}", "method": "PUT", "body": {"n": n}}
            for n in range(4)
        ]

        responses = service.submit_batch(1, items)

        assert [r.id for r in responses] == ["id-1", "id-2", "id-3", "id-4"]
        assert all(r.status is SyncOperationStatus.PENDING for r in responses)
        stored = repository.add_many.call_args.args[0]
        assert [op.url for op in stored] == [f"/api/visits/{n}" for n in range(4)]

    def test_batch_user_overrides_item_user(
        self, service: SyncQueueService, repository: MagicMock
    ) -> None:
        request = CreateSyncOperation(url="/api/visits", method="POST", user_id=9)
        service.submit_batch(2, [request, {"url": "/api/x", "method": "GET", "userId": 8}])
        stored = repository.add_many.call_args.args[0]
        assert {op.user_id for op in stored} == {2}

    def test_invalid_item_rejects_whole_batch(
        self, service: SyncQueueService, repository: MagicMock
    ) -> None:
        """Nothing is written when any item is invalid; the index is reported."""
        items = [
            {"url": "/api/visits", "method": "POST"},
            {"url": "/api/visits", "method": "FETCH"},
        ]

        with pytest.raises(ValidationError, match=r"operations\[1\]"):
            service.submit_batch(1, items)

        repository.add_many.assert_not_called()

    def test_empty_batch(self, service: SyncQueueService) -> None:
        assert service.submit_batch(1, []) == []

    def test_rejects_non_list(self, service: SyncQueueService) -> None:
        with pytest.raises(ValidationError, match="list"):
            service.submit_batch(1, {"url": "/api/visits"})  # type: ignore[arg-type]

    def test_rejects_invalid_user(self, service: SyncQueueService) -> None:
        with pytest.raises(ValidationError, match="userId"):
            service.submit_batch(0, [])


class TestGetAndDelete:
    """Tests for user-scoped lookups."""

    def test_get_missing_raises(self, service: SyncQueueService) -> None:
        with pytest.raises(SyncOperationNotFoundError):
            service.get("nope", 1)

    def test_get_other_users_operation_raises(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        """Another user's operation is indistinguishable from a missing one."""
        repository.get.return_value = make_operation(id="x", user_id=2)
        with pytest.raises(SyncOperationNotFoundError):
            service.get("x", 1)

    def test_delete_checks_ownership_first(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.get.return_value = make_operation(id="x", user_id=2)
        with pytest.raises(SyncOperationNotFoundError):
            service.delete("x", 1)
        repository.delete.assert_not_called()

    def test_delete_own_operation(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.get.return_value = make_operation(id="x", user_id=1)
        service.delete("x", 1)
        repository.delete.assert_called_once_with("x")


class TestListOperations:
    """Tests for list_operations."""

    def test_passes_parsed_status(
        self, service: SyncQueueService, repository: MagicMock
    ) -> None:
        service.list_operations(1, "error")
        repository.list_for_user.assert_called_once_with(1, SyncOperationStatus.ERROR)

    def test_unknown_status_rejected(self, service: SyncQueueService) -> None:
        with pytest.raises(ValidationError):
            service.list_operations(1, "done")


class TestUpdateStatus:
    """Tests for update_status."""

    def test_valid_transition_is_saved(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.get.return_value = make_operation(
            id="x", status=SyncOperationStatus.PROCESSING
        )

        updated = service.update_status(
            "x",
            1,
            UpdateSyncOperation(status="error", error_message="Server responded with 500", retries=1),
        )

        assert updated.status is SyncOperationStatus.ERROR
        assert updated.error_message == "Server responded with 500"
        assert updated.retries == 1
        repository.save.assert_called_once_with(updated)

    def test_invalid_transition_raises_and_does_not_save(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.get.return_value = make_operation(
            id="x", status=SyncOperationStatus.COMPLETED
        )

        with pytest.raises(InvalidTransitionError):
            service.update_status("x", 1, UpdateSyncOperation(status="pending"))

        repository.save.assert_not_called()


class TestStatusAndMaintenance:
    """Tests for status, clear_completed and retry_failed."""

    def test_status_summarizes_operations(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.list_for_user.return_value = [
            make_operation(status=SyncOperationStatus.PENDING),
            make_operation(status=SyncOperationStatus.ERROR, error_message="x"),
        ]
        summary = service.status(1)
        assert summary.pending_count == 1
        assert summary.error_count == 1
        assert summary.last_sync_time is None

    def test_clear_completed_returns_deleted_ids(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        repository.list_for_user.return_value = [
            make_operation(id="a", status=SyncOperationStatus.COMPLETED),
            make_operation(id="b", status=SyncOperationStatus.COMPLETED),
        ]
        assert service.clear_completed(1) == ["a", "b"]
        repository.list_for_user.assert_called_once_with(1, SyncOperationStatus.COMPLETED)

    def test_retry_failed_skips_exhausted_operations(
        self, service: SyncQueueService, repository: MagicMock, make_operation
    ) -> None:
        """Only operations below max_retries go back to pending."""
        repository.list_for_user.return_value = [
            make_operation(id="a", status=SyncOperationStatus.ERROR, error_message="x", retries=1),
            make_operation(id="b", status=SyncOperationStatus.ERROR, error_message="x", retries=3),
        ]

        assert service.retry_failed(1) == ["a"]

        saved = repository.save.call_args.args[0]
        assert saved.id == "a"
        assert saved.status is SyncOperationStatus.PENDING
        assert saved.error_message is None
        assert saved.retries == 1
