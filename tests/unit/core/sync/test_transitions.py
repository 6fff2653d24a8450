"""Tests for sync operation status transitions."""

import pytest

from careunity.core.sync.transitions import can_transition, ensure_transition
from careunity.domain.entities import SyncOperationStatus as S
from careunity.domain.exceptions import InvalidTransitionError

ALLOWED = [
    (S.PENDING, S.PROCESSING),
    (S.PROCESSING, S.COMPLETED),
    (S.PROCESSING, S.ERROR),
    (S.ERROR, S.PENDING),
]


class TestCanTransition:
    """Tests for the transition table."""

    @pytest.mark.parametrize(("current", "target"), ALLOWED)
    def test_allowed(self, current: S, target: S) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [(c, t) for c in S for t in S if (c, t) not in ALLOWED],
    )
    def test_everything_else_rejected(self, current: S, target: S) -> None:
        """Includes self-transitions and leaving completed."""
        assert not can_transition(current, target)


class TestEnsureTransition:
    """Tests for ensure_transition."""

    def test_raises_with_both_states(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(S.COMPLETED, S.PENDING)
        assert exc_info.value.current == "completed"
        assert exc_info.value.requested == "pending"
        assert exc_info.value.hint is not None

    def test_allowed_returns_none(self) -> None:
        assert ensure_transition(S.ERROR, S.PENDING) is None
