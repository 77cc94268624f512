"""Public domain model surface."""

from __future__ import annotations

from nutrisync.domain.model.enums import ConflictStrategy, SyncState, SyncStatus
from nutrisync.domain.model.primitives import (
    AchievementId,
    AttemptId,
    Clock,
    OwnerId,
    TowerId,
    as_utc,
    utcnow,
)
from nutrisync.domain.model.progress import (
    AchievementState,
    AttemptRecord,
    CooldownState,
    StaminaState,
    TowerState,
    UserProfile,
)
from nutrisync.domain.model.save import (
    CURRENT_SCHEMA_VERSION,
    MAX_RECENT_ATTEMPTS,
    SaveRecord,
    new_save_record,
)

__all__ = [  # noqa: RUF022
    # primitives
    "AchievementId",
    "AttemptId",
    "Clock",
    "OwnerId",
    "TowerId",
    "as_utc",
    "utcnow",
    # enums
    "ConflictStrategy",
    "SyncState",
    "SyncStatus",
    # progress
    "AchievementState",
    "AttemptRecord",
    "CooldownState",
    "StaminaState",
    "TowerState",
    "UserProfile",
    # aggregate
    "CURRENT_SCHEMA_VERSION",
    "MAX_RECENT_ATTEMPTS",
    "SaveRecord",
    "new_save_record",
]
