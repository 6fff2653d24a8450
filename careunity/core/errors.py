"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for all careunity CLI commands.
"""

from pathlib import Path
from typing import NoReturn

import click


class CareUnityCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise CareUnityCliError(
            "No careunity database found",
            hint="Run 'careunity init' to create one"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def not_initialized_error(db_path: Path) -> NoReturn:
    """Raise error when the database does not exist.

    Args:
        db_path: The database path that was looked up.

    Raises:
        CareUnityCliError: Always raises with init hint.
    """
    raise CareUnityCliError(
        f"No careunity database at {db_path}",
        hint="Run 'careunity init' in your project root, or pass --db",
    )


def invalid_header_error(header: str) -> NoReturn:
    """Raise error when a --header value is not NAME:VALUE.

    Args:
        header: The malformed header argument.

    Raises:
        CareUnityCliError: Always raises with the expected format.
    """
    raise CareUnityCliError(
        f"Invalid header '{header}'",
        hint="Use --header 'Name: value', e.g. --header 'If-Match: 3'",
    )
