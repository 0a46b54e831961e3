"""Live snapshot sync package."""

from src.sync.adapter import SnapshotSync, SyncState, SyncSubscription

__all__ = [
    "SnapshotSync",
    "SyncState",
    "SyncSubscription",
]
