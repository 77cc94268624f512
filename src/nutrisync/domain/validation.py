"""Structural checks applied to every decoded save record."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrisync.domain.errors import DecodeError, DecodeErrorKind
from nutrisync.domain.model import MAX_RECENT_ATTEMPTS

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from nutrisync.domain.model import SaveRecord


def validate_record(record: SaveRecord) -> SaveRecord:
    """Return ``record`` if it is usable, otherwise raise ``DecodeError(kind=INVALID)``.

    A record failing validation must be treated exactly like one that failed to decode.
    """

    problems: list[str] = []
    if not (record.owner_id or "").strip():
        problems.append("owner id is empty")
    if record.user is None:
        problems.append("user profile is missing")
    elif not (record.user.user_id or "").strip():
        problems.append("user id is empty")
    if len(record.recent_attempts) > MAX_RECENT_ATTEMPTS:
        problems.append(f"more than {MAX_RECENT_ATTEMPTS} recent attempts")

    duplicate_cooldowns = _duplicates(cooldown.key for cooldown in record.cooldowns)
    if duplicate_cooldowns:
        problems.append(f"duplicate cooldowns for {sorted(duplicate_cooldowns)}")
    duplicate_achievements = _duplicates(
        (entry.achievement_id, entry.owner_id) for entry in record.achievements
    )
    if duplicate_achievements:
        problems.append(f"duplicate achievements for {sorted(duplicate_achievements)}")

    if problems:
        raise DecodeError("; ".join(problems), kind=DecodeErrorKind.INVALID)
    return record


def _duplicates[TKey: Hashable](keys: Iterable[TKey]) -> set[TKey]:
    seen: set[TKey] = set()
    repeated: set[TKey] = set()
    for key in keys:
        if key in seen:
            repeated.add(key)
        seen.add(key)
    return repeated
