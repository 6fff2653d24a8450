"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from careunity.adapters.sqlite.schema import init_database
from careunity.adapters.sqlite.sync_operation_repository import (
    SQLiteSyncOperationRepository,
)
from careunity.adapters.sqlite.user_repository import SQLiteUserRepository
from careunity.domain.entities import SyncOperation, SyncOperationStatus
from careunity.domain.value_objects import HttpMethod

# ============================================================================
# Config Isolation
# ============================================================================
# Global config lives under $XDG_CONFIG_HOME/careunity/config.toml. Point it
# at an empty directory so a developer's own config never changes test results.


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect the global config directory into the test's tmp_path."""
    xdg_home = tmp_path / "xdg_config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg_home))
    return xdg_home / "careunity" / "config.toml"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a careunity database with schema initialized.

    Returns:
        Path to .careunity/careunity.db under tmp_path.
    """
    db = tmp_path / ".careunity" / "careunity.db"
    init_database(db)
    return db


@pytest.fixture
def user_repo(db_path: Path) -> Iterator[SQLiteUserRepository]:
    """User repository over the test database."""
    with SQLiteUserRepository(db_path) as repo:
        yield repo


@pytest.fixture
def operation_repo(db_path: Path) -> Iterator[SQLiteSyncOperationRepository]:
    """Sync operation repository over the test database."""
    with SQLiteSyncOperationRepository(db_path) as repo:
        yield repo


@pytest.fixture
def user_id(user_repo: SQLiteUserRepository) -> int:
    """Register a user and return its id."""
    return user_repo.add("alice")


@pytest.fixture
def other_user_id(user_repo: SQLiteUserRepository) -> int:
    """Register a second user and return its id."""
    return user_repo.add("bob")


# ============================================================================
# Entity Builders
# ============================================================================


@pytest.fixture
def make_operation() -> Callable[..., SyncOperation]:
    """Factory for SyncOperation instances with sensible defaults.

    Example:
        op = make_operation(status=SyncOperationStatus.ERROR, retries=2,
                            error_message="boom")
    """
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> SyncOperation:
        n = next(counter)
        fields = {
            "id": f"op-{n}",
            "url": "/api/service-users/5",
            "method": HttpMethod.PATCH,
            "body": '{"fullName":"A"}',
            "headers": {},
            "timestamp": 1_700_000_000_000 + n,
            "retries": 0,
            "status": SyncOperationStatus.PENDING,
            "error_message": None,
            "entity_type": None,
            "entity_id": None,
            "user_id": 1,
        }
        fields.update(overrides)
        return SyncOperation(**fields)

    return _make
