"""Progress entities held by a save record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from nutrisync.domain.model.primitives import as_utc, utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from nutrisync.domain.model.primitives import AchievementId, AttemptId, OwnerId, TowerId

DEFAULT_MAX_STAMINA = 100
DEFAULT_STAMINA_REGEN_SECONDS = 60
DEFAULT_COOLDOWN_SECONDS = 300
DEFAULT_TOWER_STAMINA_COST = 10
DEFAULT_TOWER_HINTS = 3


@dataclass(kw_only=True)
class UserProfile:
    user_id: OwnerId
    username: str = "Player"
    password_hash: str = ""
    current_tower: TowerId = 0
    highest_score: int = 0
    sound_enabled: bool = True
    registration_date: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.registration_date = as_utc(self.registration_date)

    def record_score(self, score: int) -> bool:
        """Raise the highest score if ``score`` beats it. Returns whether it changed."""
        if score <= self.highest_score:
            return False
        self.highest_score = score
        return True

    def advance_to(self, tower_id: TowerId) -> bool:
        if tower_id <= self.current_tower:
            return False
        self.current_tower = tower_id
        return True


@dataclass(kw_only=True)
class TowerState:
    tower_id: TowerId
    name: str = ""
    grade_range: str = ""
    total_questions: int = 0
    required_score: int = 0
    is_unlocked: bool = False
    stamina_cost: int = DEFAULT_TOWER_STAMINA_COST
    total_hints: int = DEFAULT_TOWER_HINTS


@dataclass(kw_only=True)
class AchievementState:
    achievement_id: AchievementId
    owner_id: OwnerId
    name: str = ""
    condition: str = ""
    date_earned: datetime | None = None

    def __post_init__(self) -> None:
        if self.date_earned is not None:
            self.date_earned = as_utc(self.date_earned)

    @property
    def is_earned(self) -> bool:
        return self.date_earned is not None

    def earn(self, now: datetime) -> bool:
        """Mark as earned at ``now``; the first earned date is kept."""
        if self.date_earned is not None:
            return False
        self.date_earned = as_utc(now)
        return True


@dataclass(frozen=True, kw_only=True)
class AttemptRecord:
    attempt_id: AttemptId
    owner_id: OwnerId
    tower_id: TowerId
    score: int = 0
    attempted_at: datetime = field(default_factory=utcnow)
    cleared: bool = False
    perfect_score: bool = False

    def __post_init__(self) -> None:
        # frozen: bypass __setattr__ to normalise the timestamp once
        object.__setattr__(self, "attempted_at", as_utc(self.attempted_at))


@dataclass(kw_only=True)
class StaminaState:
    """Single stamina pool regenerating one point every ``regen_rate_seconds``.

    ``current`` always stays within ``[0, maximum]``: construction rejects values outside
    the range and every mutator clamps.
    """

    current: int = DEFAULT_MAX_STAMINA
    maximum: int = DEFAULT_MAX_STAMINA
    regen_rate_seconds: int = DEFAULT_STAMINA_REGEN_SECONDS
    last_regen_time: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.maximum < 0:
            raise ValueError("Stamina maximum must be non-negative")
        if not 0 <= self.current <= self.maximum:
            raise ValueError(f"Stamina {self.current} outside [0, {self.maximum}]")
        if self.regen_rate_seconds <= 0:
            raise ValueError("Stamina regen rate must be positive")
        self.last_regen_time = as_utc(self.last_regen_time)

    @property
    def is_full(self) -> bool:
        return self.current >= self.maximum

    @property
    def fraction(self) -> float:
        if self.maximum == 0:
            return 0.0
        return self.current / self.maximum

    def regenerate(self, now: datetime) -> int:
        """Add the points earned since ``last_regen_time`` and return how many were added.

        The regen timer only advances by whole periods so partial progress toward the
        next point survives; once the pool is full the timer restarts at ``now``.
        """

        now = as_utc(now)
        if self.is_full:
            return 0
        elapsed = (now - self.last_regen_time).total_seconds()
        periods = int(elapsed // self.regen_rate_seconds)
        if periods <= 0:
            return 0
        added = min(periods, self.maximum - self.current)
        self.current += added
        if self.is_full:
            self.last_regen_time = now
        else:
            self.last_regen_time += timedelta(seconds=periods * self.regen_rate_seconds)
        return added

    def spend(self, amount: int, *, now: datetime | None = None) -> bool:
        if amount < 0:
            raise ValueError("Cannot spend a negative amount of stamina")
        if amount > self.current:
            return False
        was_full = self.is_full
        self.current -= amount
        if was_full and amount:
            # regen starts counting from the moment the pool drops below max
            self.last_regen_time = as_utc(now) if now is not None else utcnow()
        return True

    def time_until_next_regen(self, now: datetime) -> timedelta:
        if self.is_full:
            return timedelta(0)
        elapsed = (as_utc(now) - self.last_regen_time).total_seconds()
        remaining = self.regen_rate_seconds - (elapsed % self.regen_rate_seconds)
        return timedelta(seconds=remaining)


@dataclass(kw_only=True)
class CooldownState:
    tower_id: TowerId
    owner_id: OwnerId
    last_played: datetime = field(default_factory=utcnow)
    duration_seconds: int = DEFAULT_COOLDOWN_SECONDS

    def __post_init__(self) -> None:
        self.last_played = as_utc(self.last_played)

    @property
    def key(self) -> tuple[TowerId, OwnerId]:
        return (self.tower_id, self.owner_id)

    def remaining(self, now: datetime) -> timedelta:
        elapsed = as_utc(now) - self.last_played
        left = timedelta(seconds=self.duration_seconds) - elapsed
        return max(left, timedelta(0))

    def is_available(self, now: datetime) -> bool:
        return self.remaining(now) == timedelta(0)

    def restart(self, now: datetime, *, duration_seconds: int | None = None) -> None:
        self.last_played = as_utc(now)
        if duration_seconds is not None:
            self.duration_seconds = duration_seconds
