"""Domain exceptions for CareUnity offline logic.

These exceptions represent business rule violations and domain-level errors.
They should be caught at the application boundary (CLI, API) and converted
to appropriate user-facing error messages.
"""


class CareUnityDomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class ValidationError(CareUnityDomainError, ValueError):
    """Raised when input fails validation before anything is persisted.

    Also a ValueError so that dataclass validation reads the same as
    the rest of the domain layer.
    """

    pass


class InvalidTransitionError(CareUnityDomainError):
    """Raised when a sync operation status change is not allowed."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move sync operation from '{current}' to '{requested}'",
            hint="Allowed: pending -> processing -> completed|error, error -> pending",
        )
        self.current = current
        self.requested = requested


class SyncOperationNotFoundError(CareUnityDomainError):
    """Raised when a sync operation does not exist for the requesting user."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Sync operation not found: {operation_id}")
        self.operation_id = operation_id


class UserNotFoundError(CareUnityDomainError):
    """Raised when an operation references a user that does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(
            f"User not found: {user_id}",
            hint="Register the user first with 'careunity user add <username>'",
        )
        self.user_id = user_id
