"""Status lifecycle rules for sync operations.

    pending    -> processing
    processing -> completed | error
    error      -> pending        (retry)

Completed operations are terminal. Self-transitions are rejected.
"""

from careunity.domain.entities import SyncOperationStatus
from careunity.domain.exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: dict[SyncOperationStatus, frozenset[SyncOperationStatus]] = {
    SyncOperationStatus.PENDING: frozenset({SyncOperationStatus.PROCESSING}),
    SyncOperationStatus.PROCESSING: frozenset(
        {SyncOperationStatus.COMPLETED, SyncOperationStatus.ERROR}
    ),
    SyncOperationStatus.ERROR: frozenset({SyncOperationStatus.PENDING}),
    SyncOperationStatus.COMPLETED: frozenset(),
}


def can_transition(current: SyncOperationStatus, target: SyncOperationStatus) -> bool:
    """Check whether moving from current to target is allowed."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: SyncOperationStatus, target: SyncOperationStatus) -> None:
    """Raise if moving from current to target is not allowed.

    Raises:
        InvalidTransitionError: If the transition is not in ALLOWED_TRANSITIONS.
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
