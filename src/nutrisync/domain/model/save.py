"""The save record aggregate: one player's complete persistent state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nutrisync.domain.model.primitives import as_utc, utcnow
from nutrisync.domain.model.progress import (
    AchievementState,
    AttemptRecord,
    CooldownState,
    StaminaState,
    TowerState,
    UserProfile,
)

if TYPE_CHECKING:
    from datetime import datetime

    from nutrisync.domain.model.primitives import AchievementId, OwnerId, TowerId

MAX_RECENT_ATTEMPTS = 50
CURRENT_SCHEMA_VERSION = 2


@dataclass(eq=True, kw_only=True)
class SaveRecord:
    """Root aggregate of persistent player state.

    ``owner_id`` is fixed at creation; re-assigning it raises ``AttributeError``.
    ``recent_attempts`` is kept newest first and never exceeds ``MAX_RECENT_ATTEMPTS``.
    Towers, achievements and cooldowns stay plain lists; the mutators below keep at
    most one entry per key.
    """

    owner_id: OwnerId
    user: UserProfile
    towers: list[TowerState] = field(default_factory=list[TowerState])
    achievements: list[AchievementState] = field(default_factory=list[AchievementState])
    recent_attempts: list[AttemptRecord] = field(default_factory=list[AttemptRecord])
    stamina: StaminaState = field(default_factory=StaminaState)
    cooldowns: list[CooldownState] = field(default_factory=list[CooldownState])
    last_save_time: datetime = field(default_factory=utcnow)
    schema_version: int = CURRENT_SCHEMA_VERSION

    def __post_init__(self) -> None:
        self.last_save_time = as_utc(self.last_save_time)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "owner_id" and "owner_id" in self.__dict__:
            raise AttributeError("SaveRecord.owner_id cannot change after creation")
        super().__setattr__(name, value)

    def touch(self, now: datetime | None = None) -> None:
        self.last_save_time = as_utc(now) if now is not None else utcnow()

    # towers

    def tower(self, tower_id: TowerId) -> TowerState | None:
        return next((tower for tower in self.towers if tower.tower_id == tower_id), None)

    def unlock_tower(self, tower_id: TowerId) -> TowerState:
        tower = self.tower(tower_id)
        if tower is None:
            tower = TowerState(tower_id=tower_id)
            self.towers.append(tower)
        tower.is_unlocked = True
        return tower

    # achievements

    def achievement(self, achievement_id: AchievementId) -> AchievementState | None:
        return next(
            (
                entry
                for entry in self.achievements
                if entry.achievement_id == achievement_id and entry.owner_id == self.owner_id
            ),
            None,
        )

    def earn_achievement(
        self,
        achievement_id: AchievementId,
        *,
        name: str = "",
        now: datetime | None = None,
    ) -> AchievementState:
        entry = self.achievement(achievement_id)
        if entry is None:
            entry = AchievementState(achievement_id=achievement_id, owner_id=self.owner_id, name=name)
            self.achievements.append(entry)
        entry.earn(now or utcnow())
        return entry

    # attempts

    def record_attempt(self, attempt: AttemptRecord) -> None:
        """Add a completed attempt, evicting the oldest beyond ``MAX_RECENT_ATTEMPTS``."""
        self.recent_attempts.insert(0, attempt)
        del self.recent_attempts[MAX_RECENT_ATTEMPTS:]

    # cooldowns

    def cooldown_for(self, tower_id: TowerId) -> CooldownState | None:
        return next(
            (
                cooldown
                for cooldown in self.cooldowns
                if cooldown.key == (tower_id, self.owner_id)
            ),
            None,
        )

    def start_cooldown(
        self,
        tower_id: TowerId,
        *,
        duration_seconds: int,
        now: datetime | None = None,
    ) -> CooldownState:
        started_at = now or utcnow()
        cooldown = self.cooldown_for(tower_id)
        if cooldown is None:
            cooldown = CooldownState(
                tower_id=tower_id,
                owner_id=self.owner_id,
                last_played=started_at,
                duration_seconds=duration_seconds,
            )
            self.cooldowns.append(cooldown)
        else:
            cooldown.restart(started_at, duration_seconds=duration_seconds)
        return cooldown

    def is_tower_available(self, tower_id: TowerId, now: datetime | None = None) -> bool:
        cooldown = self.cooldown_for(tower_id)
        return cooldown is None or cooldown.is_available(now or utcnow())


def new_save_record(
    owner_id: OwnerId,
    *,
    username: str = "Player",
    now: datetime | None = None,
) -> SaveRecord:
    """Create the default record for a brand new player."""

    created_at = as_utc(now) if now is not None else utcnow()
    return SaveRecord(
        owner_id=owner_id,
        user=UserProfile(user_id=owner_id, username=username, registration_date=created_at),
        stamina=StaminaState(last_regen_time=created_at),
        last_save_time=created_at,
    )
