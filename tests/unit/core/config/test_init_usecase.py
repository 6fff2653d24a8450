"""Tests for InitUseCase."""

from pathlib import Path
from unittest.mock import MagicMock

from careunity.adapters.sqlite.initializer import SqliteDatabaseInitializer
from careunity.adapters.sqlite.schema import check_schema_version
from careunity.core.config.init_usecase import InitRequest, InitUseCase


class TestInitUseCase:
    """Tests for creating the .careunity directory."""

    def test_creates_config_and_database(self, tmp_path: Path) -> None:
        use_case = InitUseCase(db_initializer=SqliteDatabaseInitializer())

        response = use_case.execute(InitRequest(root=tmp_path))

        assert response.success
        assert response.careunity_dir == tmp_path / ".careunity"
        assert response.config_path.exists()
        assert check_schema_version(response.db_path) == 1
        assert not response.was_reinitialized

    def test_existing_directory_without_force_fails(self, tmp_path: Path) -> None:
        (tmp_path / ".careunity").mkdir()
        initializer = MagicMock()

        response = InitUseCase(db_initializer=initializer).execute(InitRequest(root=tmp_path))

        assert not response.success
        assert response.already_exists
        assert "--force" in response.error
        initializer.init_database.assert_not_called()

    def test_force_reinitializes(self, tmp_path: Path) -> None:
        (tmp_path / ".careunity").mkdir()
        use_case = InitUseCase(db_initializer=SqliteDatabaseInitializer())

        response = use_case.execute(InitRequest(root=tmp_path, force=True))

        assert response.success
        assert response.was_reinitialized

    def test_writes_base_url(self, tmp_path: Path) -> None:
        use_case = InitUseCase(db_initializer=SqliteDatabaseInitializer())
        response = use_case.execute(
            InitRequest(root=tmp_path, base_url="https://care.example.org")
        )
        assert 'base_url = "https://care.example.org"' in response.config_path.read_text()

    def test_initializer_failure_becomes_error_response(self, tmp_path: Path) -> None:
        initializer = MagicMock()
        initializer.init_database.side_effect = OSError("disk full")

        response = InitUseCase(db_initializer=initializer).execute(InitRequest(root=tmp_path))

        assert not response.success
        assert not response.already_exists
        assert "disk full" in response.error
