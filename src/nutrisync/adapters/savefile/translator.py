"""Translate between save file models and domain save records."""

from __future__ import annotations

from logging import getLogger

from nutrisync.domain.errors import DecodeError, DecodeErrorKind
from nutrisync.domain.model import (
    CURRENT_SCHEMA_VERSION,
    AchievementState,
    AttemptRecord,
    CooldownState,
    SaveRecord,
    StaminaState,
    TowerState,
    UserProfile,
)

from .schema import (
    AchievementModel,
    AttemptModel,
    CooldownModel,
    SaveFileModel,
    StaminaModel,
    TowerModel,
    UserModel,
)

log = getLogger(__name__)


def to_domain(model: SaveFileModel) -> SaveRecord:
    """Build a ``SaveRecord`` from a parsed save file.

    Domain constructors enforce their own invariants (for example the stamina range); a
    violation surfaces as ``DecodeError(kind=INVALID)``.
    """

    if model.user is None:
        raise DecodeError("Save has no user profile", kind=DecodeErrorKind.INVALID)
    try:
        return SaveRecord(
            owner_id=model.owner_id,
            user=_user(model.user),
            towers=[_tower(tower) for tower in model.towers],
            achievements=[_achievement(entry) for entry in model.achievements],
            recent_attempts=[_attempt(attempt) for attempt in model.recent_attempts],
            stamina=_stamina(model.stamina),
            cooldowns=[_cooldown(cooldown) for cooldown in model.cooldowns],
            last_save_time=model.last_save_time,
            schema_version=CURRENT_SCHEMA_VERSION,
        )
    except ValueError as exc:
        log.debug("Rejecting save record: %s", exc)
        raise DecodeError(str(exc), kind=DecodeErrorKind.INVALID) from exc


def _user(model: UserModel) -> UserProfile:
    return UserProfile(
        user_id=model.user_id,
        username=model.username,
        password_hash=model.password_hash,
        current_tower=model.current_tower,
        highest_score=model.highest_score,
        sound_enabled=model.sound_enabled,
        registration_date=model.registration_date,
    )


def _tower(model: TowerModel) -> TowerState:
    return TowerState(**model.model_dump())


def _achievement(model: AchievementModel) -> AchievementState:
    return AchievementState(**model.model_dump())


def _attempt(model: AttemptModel) -> AttemptRecord:
    return AttemptRecord(**model.model_dump())


def _stamina(model: StaminaModel) -> StaminaState:
    return StaminaState(
        current=model.current,
        maximum=model.maximum,
        regen_rate_seconds=model.regen_rate_seconds,
        last_regen_time=model.last_regen_time,
    )


def _cooldown(model: CooldownModel) -> CooldownState:
    return CooldownState(**model.model_dump())


def to_schema(record: SaveRecord) -> SaveFileModel:
    """Project a record onto the file model; derived values are not carried over."""

    user = record.user
    stamina = record.stamina
    return SaveFileModel(
        schema_version=CURRENT_SCHEMA_VERSION,
        owner_id=record.owner_id,
        user=UserModel(
            user_id=user.user_id,
            username=user.username,
            password_hash=user.password_hash,
            current_tower=user.current_tower,
            highest_score=user.highest_score,
            sound_enabled=user.sound_enabled,
            registration_date=user.registration_date,
        ),
        towers=[
            TowerModel(
                tower_id=tower.tower_id,
                name=tower.name,
                grade_range=tower.grade_range,
                total_questions=tower.total_questions,
                required_score=tower.required_score,
                is_unlocked=tower.is_unlocked,
                stamina_cost=tower.stamina_cost,
                total_hints=tower.total_hints,
            )
            for tower in record.towers
        ],
        achievements=[
            AchievementModel(
                achievement_id=entry.achievement_id,
                owner_id=entry.owner_id,
                name=entry.name,
                condition=entry.condition,
                date_earned=entry.date_earned,
            )
            for entry in record.achievements
        ],
        recent_attempts=[
            AttemptModel(
                attempt_id=attempt.attempt_id,
                owner_id=attempt.owner_id,
                tower_id=attempt.tower_id,
                score=attempt.score,
                attempted_at=attempt.attempted_at,
                cleared=attempt.cleared,
                perfect_score=attempt.perfect_score,
            )
            for attempt in record.recent_attempts
        ],
        stamina=StaminaModel(
            current=stamina.current,
            maximum=stamina.maximum,
            regen_rate_seconds=stamina.regen_rate_seconds,
            last_regen_time=stamina.last_regen_time,
        ),
        cooldowns=[
            CooldownModel(
                tower_id=cooldown.tower_id,
                owner_id=cooldown.owner_id,
                last_played=cooldown.last_played,
                duration_seconds=cooldown.duration_seconds,
            )
            for cooldown in record.cooldowns
        ],
        last_save_time=record.last_save_time,
    )
