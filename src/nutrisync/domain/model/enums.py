"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ConflictStrategy(StrEnum):
    USE_LOCAL = "use_local"
    USE_REMOTE = "use_remote"
    USE_NEWER = "use_newer"
    MERGE = "merge"


class SyncState(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"


class SyncStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"
    REJECTED = "rejected"
