"""Factory classes for service and adapter instantiation.

This module centralizes the creation of services and their dependencies,
keeping the CLI layer free from direct adapter imports. This follows the
Clean Architecture principle that presentation layers should not know
about concrete infrastructure implementations.

Adapters are imported lazily so commands only load what they use.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from careunity.adapters.http.httpx_transport import HttpxTransport
    from careunity.core.sync.replay import ReplayEngine
    from careunity.core.sync.sync_service import SyncQueueService
    from careunity.domain.config import CareUnityConfig
    from careunity.ports.repositories import SyncOperationRepository


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self):
        """Create a TomlConfigProvider instance.

        Returns:
            TomlConfigProvider instance.
        """
        from careunity.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()

    def create_db_initializer(self):
        """Create a SqliteDatabaseInitializer instance.

        Returns:
            SqliteDatabaseInitializer instance.
        """
        from careunity.adapters.sqlite.initializer import SqliteDatabaseInitializer

        return SqliteDatabaseInitializer()


class RepositoryFactory:
    """Factory for creating repository instances."""

    def create_sync_operation_repository(self, db_path: Path):
        """Create a SQLiteSyncOperationRepository instance.

        Args:
            db_path: Path to the SQLite database.

        Returns:
            SQLiteSyncOperationRepository instance.
        """
        from careunity.adapters.sqlite.sync_operation_repository import (
            SQLiteSyncOperationRepository,
        )

        return SQLiteSyncOperationRepository(db_path)

    def create_user_repository(self, db_path: Path):
        """Create a SQLiteUserRepository instance.

        Args:
            db_path: Path to the SQLite database.

        Returns:
            SQLiteUserRepository instance.
        """
        from careunity.adapters.sqlite.user_repository import SQLiteUserRepository

        return SQLiteUserRepository(db_path)


class ServiceFactory:
    """Factory for creating services with all dependencies.

    Centralizes the dependency wiring for the sync queue and replay,
    keeping the CLI layer clean and testable.

    Args:
        config: CareUnityConfig with server, sync and cache settings.
    """

    def __init__(self, config: CareUnityConfig) -> None:
        self._config = config

    def create_queue_service(self, repository: SyncOperationRepository) -> SyncQueueService:
        """Create SyncQueueService over a repository.

        Args:
            repository: Storage for sync operations.

        Returns:
            SyncQueueService using the configured retry limit.
        """
        from careunity.core.sync.sync_service import SyncQueueService

        return SyncQueueService(repository, max_retries=self._config.sync.max_retries)

    def create_transport(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpxTransport:
        """Create an HttpxTransport for the CareUnity server.

        Args:
            base_url: Server origin (defaults to [server] base_url).
            transport: Optional lower-level httpx transport.

        Returns:
            HttpxTransport instance; the caller closes it.
        """
        from careunity.adapters.http.httpx_transport import HttpxTransport

        return HttpxTransport(
            base_url or self._config.server.base_url,
            timeout=self._config.server.request_timeout,
            transport=transport,
        )

    def create_replay_engine(
        self,
        repository: SyncOperationRepository,
        transport: HttpxTransport,
    ) -> ReplayEngine:
        """Create ReplayEngine with its queue service.

        Args:
            repository: Storage for sync operations.
            transport: Sends operations to the server.

        Returns:
            ReplayEngine ready to replay.
        """
        from careunity.core.sync.replay import ReplayEngine

        return ReplayEngine(repository, transport, self.create_queue_service(repository))
