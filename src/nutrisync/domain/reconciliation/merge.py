"""Field-by-field merge of two divergent save records.

Merge policy (applied in this order so the outcome is reproducible):
- profile counters (``highest_score``, ``current_tower``) take the maximum; progress
  never regresses from a merge
- towers: union by ``tower_id``; an unlocked entry beats a locked one
- achievements: union by ``achievement_id`` over earned entries; first earned wins
- recent attempts: union, newest first, truncated to ``MAX_RECENT_ATTEMPTS``
- stamina: the pool with more points travels wholesale with its regen timer
- cooldowns: union by ``(tower_id, owner_id)``; the latest ``last_played`` wins
- ``last_save_time`` is stamped with ``now``

Tower unlocks and achievement dates are deliberately separate policies: an unlock has
no ordering, while the first earned date of an achievement is historically meaningful.
"""

from __future__ import annotations

import copy
from logging import getLogger
from typing import TYPE_CHECKING

from nutrisync.domain.model import MAX_RECENT_ATTEMPTS, SaveRecord, as_utc

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable
    from datetime import datetime

    from nutrisync.domain.model import (
        AchievementState,
        AttemptRecord,
        CooldownState,
        StaminaState,
        TowerState,
        UserProfile,
    )

log = getLogger(__name__)


def merge_records(local: SaveRecord, remote: SaveRecord, *, now: datetime) -> SaveRecord:
    """Return a new record combining ``local`` and ``remote``; inputs stay untouched."""

    log.info("Merging local and remote save records")
    left = copy.deepcopy(local)
    right = copy.deepcopy(remote)

    stamina = _merge_stamina(left.stamina, right.stamina)
    merged = SaveRecord(
        owner_id=left.owner_id,
        user=_merge_user(left.user, right.user),
        towers=_merge_towers(left.towers, right.towers),
        achievements=_merge_achievements(left.achievements, right.achievements),
        recent_attempts=_merge_attempts(left.recent_attempts, right.recent_attempts),
        stamina=stamina,
        cooldowns=_merge_cooldowns(left.cooldowns, right.cooldowns),
        last_save_time=as_utc(now),
        schema_version=max(left.schema_version, right.schema_version),
    )
    log.debug(
        "Merge produced towers=%d achievements=%d attempts=%d cooldowns=%d",
        len(merged.towers),
        len(merged.achievements),
        len(merged.recent_attempts),
        len(merged.cooldowns),
    )
    return merged


def _merge_user(local: UserProfile, remote: UserProfile) -> UserProfile:
    local.highest_score = max(local.highest_score, remote.highest_score)
    local.current_tower = max(local.current_tower, remote.current_tower)
    return local


def _merge_towers(local: list[TowerState], remote: list[TowerState]) -> list[TowerState]:
    def prefer_unlocked(existing: TowerState, incoming: TowerState) -> TowerState:
        if incoming.is_unlocked and not existing.is_unlocked:
            return incoming
        return existing

    merged = _union_by_key(local, remote, key=lambda tower: tower.tower_id, pick=prefer_unlocked)
    return sorted(merged, key=lambda tower: tower.tower_id)


def _merge_achievements(
    local: list[AchievementState],
    remote: list[AchievementState],
) -> list[AchievementState]:
    def first_earned(existing: AchievementState, incoming: AchievementState) -> AchievementState:
        # both are earned here, so both dates are set
        if incoming.date_earned is not None and existing.date_earned is not None:
            if incoming.date_earned < existing.date_earned:
                return incoming
        return existing

    return _union_by_key(
        [entry for entry in local if entry.is_earned],
        [entry for entry in remote if entry.is_earned],
        key=lambda entry: entry.achievement_id,
        pick=first_earned,
    )


def _merge_attempts(
    local: list[AttemptRecord],
    remote: list[AttemptRecord],
) -> list[AttemptRecord]:
    combined = list(dict.fromkeys([*local, *remote]))
    combined.sort(key=lambda attempt: attempt.attempted_at, reverse=True)
    return combined[:MAX_RECENT_ATTEMPTS]


def _merge_stamina(local: StaminaState, remote: StaminaState) -> StaminaState:
    # a tie hands the pool to remote
    return local if local.current > remote.current else remote


def _merge_cooldowns(
    local: list[CooldownState],
    remote: list[CooldownState],
) -> list[CooldownState]:
    def latest_played(existing: CooldownState, incoming: CooldownState) -> CooldownState:
        return incoming if incoming.last_played > existing.last_played else existing

    return _union_by_key(local, remote, key=lambda cooldown: cooldown.key, pick=latest_played)


def _union_by_key[TItem, TKey: Hashable](
    local: Iterable[TItem],
    remote: Iterable[TItem],
    *,
    key: Callable[[TItem], TKey],
    pick: Callable[[TItem, TItem], TItem],
) -> list[TItem]:
    by_key: dict[TKey, TItem] = {}
    for item in local:
        by_key.setdefault(key(item), item)
    for item in remote:
        item_key = key(item)
        existing = by_key.get(item_key)
        by_key[item_key] = item if existing is None else pick(existing, item)
    return list(by_key.values())
