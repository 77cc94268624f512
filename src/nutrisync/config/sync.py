"""Autosave and synchronisation timing defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from nutrisync.domain.model import ConflictStrategy

from .env import env_seconds, optional_env_var
from .errors import ConfigurationError

DEFAULT_AUTOSAVE_SECONDS = 120.0
DEFAULT_SYNC_SECONDS = 300.0
DEFAULT_UNSAVED_ALERT_SECONDS = 600.0
DEFAULT_TICK_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    autosave_interval: timedelta = timedelta(seconds=DEFAULT_AUTOSAVE_SECONDS)
    sync_interval: timedelta = timedelta(seconds=DEFAULT_SYNC_SECONDS)
    unsaved_alert_after: timedelta = timedelta(seconds=DEFAULT_UNSAVED_ALERT_SECONDS)
    tick_seconds: float = DEFAULT_TICK_SECONDS
    conflict_strategy: ConflictStrategy = ConflictStrategy.USE_NEWER


def parse_strategy(value: str) -> ConflictStrategy:
    try:
        return ConflictStrategy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(strategy.value for strategy in ConflictStrategy)
        raise ConfigurationError(f"Unknown conflict strategy {value!r} (expected one of: {choices})") from exc


def get_sync_config() -> SyncConfig:
    strategy = optional_env_var("NUTRISYNC_CONFLICT_STRATEGY")
    return SyncConfig(
        autosave_interval=timedelta(
            seconds=env_seconds("NUTRISYNC_AUTOSAVE_INTERVAL", DEFAULT_AUTOSAVE_SECONDS)
        ),
        sync_interval=timedelta(seconds=env_seconds("NUTRISYNC_SYNC_INTERVAL", DEFAULT_SYNC_SECONDS)),
        conflict_strategy=parse_strategy(strategy) if strategy else ConflictStrategy.USE_NEWER,
    )
