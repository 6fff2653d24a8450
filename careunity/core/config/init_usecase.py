"""Init use case for creating a .careunity/ directory.

Creates config.toml and careunity.db (schema for users, sync operations and
metadata) in the project root.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from careunity.core.use_case_errors import format_error_message, log_use_case_error
from careunity.ports.database import DatabaseInitializer
from careunity.shared.config_io import create_default_config_file

logger = logging.getLogger(__name__)

CAREUNITY_DIR = ".careunity"
DB_FILENAME = "careunity.db"


@dataclass
class InitRequest:
    """Request to initialize careunity in a directory.

    Attributes:
        root: Directory where .careunity/ will be created
        force: Reinitialize even if .careunity/ already exists
        base_url: CareUnity server origin written to config.toml
    """

    root: Path
    force: bool = False
    base_url: str = "http://localhost:5000"


@dataclass
class InitResponse:
    """Response from init operation.

    Attributes:
        careunity_dir: Created .careunity/ directory (None on failure)
        config_path: Created config.toml (None on failure)
        db_path: Created careunity.db (None on failure)
        was_reinitialized: True if an existing .careunity/ was reused
        success: Whether initialization succeeded
        error: Error message if initialization failed
        already_exists: True if failed because .careunity/ already exists
    """

    careunity_dir: Path | None = None
    config_path: Path | None = None
    db_path: Path | None = None
    was_reinitialized: bool = False
    success: bool = True
    error: str | None = None
    already_exists: bool = False

    @classmethod
    def create_error(cls, message: str, *, already_exists: bool = False) -> "InitResponse":
        return cls(success=False, error=message, already_exists=already_exists)


class InitUseCase:
    """Creates the .careunity/ directory structure."""

    def __init__(self, db_initializer: DatabaseInitializer):
        """Initialize the use case.

        Args:
            db_initializer: Creates the database schema.
        """
        self._db_initializer = db_initializer

    def execute(self, request: InitRequest) -> InitResponse:
        """Create .careunity/config.toml and .careunity/careunity.db.

        Error handling contract:
            - KeyboardInterrupt/SystemExit are re-raised
            - All other exceptions are converted to error responses

        Args:
            request: Init request with root directory and options

        Returns:
            InitResponse with created paths, or error information.
        """
        careunity_dir = request.root / CAREUNITY_DIR
        config_path = careunity_dir / "config.toml"
        db_path = careunity_dir / DB_FILENAME

        try:
            was_reinitialized = False
            if careunity_dir.exists():
                if not request.force:
                    return InitResponse.create_error(
                        f"Directory {careunity_dir} already exists. "
                        "Use --force to reinitialize.",
                        already_exists=True,
                    )
                was_reinitialized = True

            careunity_dir.mkdir(parents=True, exist_ok=True)
            create_default_config_file(config_path, base_url=request.base_url)
            self._db_initializer.init_database(db_path)
            logger.debug("Initialized %s", careunity_dir)

            return InitResponse(
                careunity_dir=careunity_dir,
                config_path=config_path,
                db_path=db_path,
                was_reinitialized=was_reinitialized,
            )
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, "initialization")
            return InitResponse.create_error(format_error_message(e, "initialization"))
