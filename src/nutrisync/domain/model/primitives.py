"""Domain primitives: scalar aliases + UTC time helpers.

Every timestamp in the save model is a timezone-aware ``datetime`` in UTC. Naive values
are taken to already be UTC so a device timezone change can never shift stored times.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

type OwnerId = str
type TowerId = int
type AchievementId = int
type AttemptId = int


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` expressed in UTC, treating naive datetimes as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
