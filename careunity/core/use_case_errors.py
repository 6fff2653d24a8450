"""Use case error handling utilities.

Use cases that report failures through a response object (rather than by
raising) share these helpers so messages and log levels stay consistent.

Design principles:
1. KeyboardInterrupt and SystemExit are always re-raised (never caught)
2. CareUnityDomainError subclasses carry user-friendly messages
3. Unexpected exceptions are logged with a traceback and converted to a
   generic message
"""

import logging
import sqlite3

from careunity.domain.exceptions import CareUnityDomainError

logger = logging.getLogger(__name__)


def format_error_message(exception: Exception, operation_name: str) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for error messages (e.g., "initialization").

    Returns:
        User-friendly error message string.
    """
    if isinstance(exception, CareUnityDomainError):
        return exception.message
    if isinstance(exception, OSError):
        return (
            f"I/O error: {exception}. "
            "Check file permissions, disk space, and filesystem access."
        )
    if isinstance(exception, sqlite3.Error):
        return f"Database error during {operation_name}: {exception}"
    if isinstance(exception, (ValueError, RuntimeError)):
        return f"{operation_name.capitalize()} error: {exception}"
    return f"Internal error during {operation_name}. Check logs for details."


def log_use_case_error(exception: Exception, operation_name: str) -> None:
    """Log an exception from a use case with appropriate severity.

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for log messages.
    """
    if isinstance(exception, CareUnityDomainError):
        logger.error(exception.message)
    elif isinstance(exception, (OSError, sqlite3.Error, ValueError, RuntimeError)):
        logger.error("Error during %s: %s", operation_name, exception)
    else:
        logger.exception("Unexpected error during %s", operation_name)
