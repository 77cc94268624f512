"""Pydantic models describing the on-disk save file (current schema version)."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SaveFileBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class UserModel(SaveFileBaseModel):
    user_id: str
    username: str = "Player"
    password_hash: str = ""
    current_tower: int = 0
    highest_score: int = 0
    sound_enabled: bool = True
    registration_date: datetime


class TowerModel(SaveFileBaseModel):
    tower_id: int
    name: str = ""
    grade_range: str = ""
    total_questions: int = 0
    required_score: int = 0
    is_unlocked: bool = False
    stamina_cost: int = 10
    total_hints: int = 3


class AchievementModel(SaveFileBaseModel):
    achievement_id: int
    owner_id: str
    name: str = ""
    condition: str = ""
    date_earned: datetime | None = None


class AttemptModel(SaveFileBaseModel):
    attempt_id: int
    owner_id: str
    tower_id: int
    score: int = 0
    attempted_at: datetime
    cleared: bool = False
    perfect_score: bool = False


class StaminaModel(SaveFileBaseModel):
    current: int
    maximum: int
    regen_rate_seconds: int
    last_regen_time: datetime


class CooldownModel(SaveFileBaseModel):
    tower_id: int
    owner_id: str
    last_played: datetime
    duration_seconds: int


class SaveFileModel(SaveFileBaseModel):
    """Root document. ``owner_id`` and ``user`` are checked by the record validator."""

    schema_version: int = Field(ge=1)
    owner_id: str = ""
    user: UserModel | None = None
    towers: list[TowerModel] = Field(default_factory=list[TowerModel])
    achievements: list[AchievementModel] = Field(default_factory=list[AchievementModel])
    recent_attempts: list[AttemptModel] = Field(default_factory=list[AttemptModel])
    stamina: StaminaModel
    cooldowns: list[CooldownModel] = Field(default_factory=list[CooldownModel])
    last_save_time: datetime
