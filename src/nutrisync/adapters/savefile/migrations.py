"""Upgrade older save payloads to the current schema before validation.

Each step takes the raw JSON object of version ``n`` and returns the object for version
``n + 1``. Steps only rename and reshape keys; they never consult the clock or fill in
gameplay defaults, so migrating the same payload twice gives the same result.

Version 1 is the layout written by the original game client: ``userId``/``userData``,
timestamps as ISO strings under ``*String`` keys (with up to seven fractional digits),
and stamina/cooldown fields named after the client's objects.
"""

from __future__ import annotations

import re
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from nutrisync.domain.errors import DecodeError, DecodeErrorKind
from nutrisync.domain.model import CURRENT_SCHEMA_VERSION

if TYPE_CHECKING:
    from collections.abc import Callable

type Payload = dict[str, Any]
type MigrationStep = Callable[[Payload], Payload]

LEGACY_VERSION_KEY = "saveVersion"
VERSION_KEY = "schemaVersion"

_FRACTION = re.compile(r"(\.\d{6})\d+")

log = getLogger(__name__)


def payload_version(payload: Payload) -> int:
    """Return the schema version a payload declares; a payload without one is version 1."""

    raw = payload.get(VERSION_KEY, payload.get(LEGACY_VERSION_KEY, 1))
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise DecodeError(f"Save version must be an integer, got {raw!r}")
    return raw


def migrate(payload: Payload) -> Payload:
    version = payload_version(payload)
    if version > CURRENT_SCHEMA_VERSION:
        raise DecodeError(
            f"Save version {version} is newer than supported version {CURRENT_SCHEMA_VERSION}",
            kind=DecodeErrorKind.UNSUPPORTED_VERSION,
        )
    if version < 1:
        raise DecodeError(f"Save version {version} is not valid")

    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS[version]
        log.info("Migrating save payload from version %d to %d", version, version + 1)
        payload = step(payload)
        version += 1
    return payload


# version 1 -> 2


def _legacy_timestamp(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"Legacy timestamp '{field}' must be a string")
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(_FRACTION.sub(r"\1", text))
    except ValueError as exc:
        raise DecodeError(f"Legacy timestamp '{field}' is not ISO 8601: {text!r}") from exc
    return parsed.isoformat()


def _rename(source: Payload, mapping: dict[str, str]) -> Payload:
    return {target: source[key] for key, target in mapping.items() if key in source}


def _objects(payload: Payload, key: str) -> list[Payload]:
    items = payload.get(key) or []
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise DecodeError(f"Legacy field '{key}' must be a list of objects")
    return items


def _v1_user(user: Payload) -> Payload:
    migrated = _rename(
        user,
        {
            "userId": "userId",
            "username": "username",
            "password": "passwordHash",
            "currentTower": "currentTower",
            "highestScore": "highestScore",
            "soundEnabled": "soundEnabled",
        },
    )
    # staminaPoints/maxStamina duplicated the stamina object and are dropped
    migrated["registrationDate"] = _legacy_timestamp(
        user.get("registrationDateString"), field="registrationDateString"
    )
    return migrated


def _v1_tower(tower: Payload) -> Payload:
    return _rename(
        tower,
        {
            "towerId": "towerId",
            "towerName": "name",
            "gradeRange": "gradeRange",
            "totalQuestions": "totalQuestions",
            "requiredScore": "requiredScore",
            "isUnlocked": "isUnlocked",
            "staminaCost": "staminaCost",
            "totalHints": "totalHints",
        },
    )


def _v1_achievement(entry: Payload) -> Payload:
    migrated = _rename(
        entry,
        {
            "achievementId": "achievementId",
            "userId": "ownerId",
            "achievementName": "name",
            "condition": "condition",
        },
    )
    migrated["dateEarned"] = _legacy_timestamp(entry.get("dateEarnedString"), field="dateEarnedString")
    return migrated


def _v1_attempt(attempt: Payload) -> Payload:
    migrated = _rename(
        attempt,
        {
            "attemptId": "attemptId",
            "userId": "ownerId",
            "towerId": "towerId",
            "score": "score",
            "cleared": "cleared",
            "perfectScore": "perfectScore",
        },
    )
    migrated["attemptedAt"] = _legacy_timestamp(
        attempt.get("dateAttemptedString"), field="dateAttemptedString"
    )
    return migrated


def _v1_stamina(stamina: Payload) -> Payload:
    migrated = _rename(
        stamina,
        {
            "currentStamina": "current",
            "maxStamina": "maximum",
            "regenRate": "regenRateSeconds",
        },
    )
    migrated["lastRegenTime"] = _legacy_timestamp(
        stamina.get("lastRegenTimeString"), field="lastRegenTimeString"
    )
    return migrated


def _v1_cooldown(cooldown: Payload) -> Payload:
    # isAvailable was a cached flag; availability is derived from lastPlayed now
    migrated = _rename(
        cooldown,
        {
            "towerId": "towerId",
            "userId": "ownerId",
            "cooldownDuration": "durationSeconds",
        },
    )
    migrated["lastPlayed"] = _legacy_timestamp(cooldown.get("lastPlayedString"), field="lastPlayedString")
    return migrated


def _v1_to_v2(payload: Payload) -> Payload:
    user = payload.get("userData")
    stamina = payload.get("stamina")
    if user is not None and not isinstance(user, dict):
        raise DecodeError("Legacy field 'userData' must be an object")
    if stamina is not None and not isinstance(stamina, dict):
        raise DecodeError("Legacy field 'stamina' must be an object")

    migrated: Payload = {
        VERSION_KEY: 2,
        "ownerId": payload.get("userId", ""),
        "towers": [_v1_tower(tower) for tower in _objects(payload, "towers")],
        "achievements": [_v1_achievement(entry) for entry in _objects(payload, "achievements")],
        "recentAttempts": [_v1_attempt(attempt) for attempt in _objects(payload, "recentAttempts")],
        "cooldowns": [_v1_cooldown(cooldown) for cooldown in _objects(payload, "cooldowns")],
        "lastSaveTime": _legacy_timestamp(payload.get("lastSaveTimeString"), field="lastSaveTimeString"),
    }
    if user is not None:
        migrated["user"] = _v1_user(user)
    if stamina is not None:
        migrated["stamina"] = _v1_stamina(stamina)
    return migrated


MIGRATIONS: dict[int, MigrationStep] = {
    1: _v1_to_v2,
}
