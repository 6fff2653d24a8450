"""Sync module for the offline operation queue.

Contains the SyncQueueService for recording and managing deferred mutations,
the ReplayEngine that delivers them, and the status transition rules.
"""

from careunity.core.sync.replay import ReplayEngine, classify_replay_error
from careunity.core.sync.sync_service import SyncQueueService
from careunity.core.sync.transitions import can_transition, ensure_transition

__all__ = [
    "ReplayEngine",
    "SyncQueueService",
    "can_transition",
    "classify_replay_error",
    "ensure_transition",
]
