"""Save file location configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "nutrisync"
DEFAULT_SAVE_FILENAME: Final[str] = "nutriquest_save.json"
DEFAULT_BACKUP_FILENAME: Final[str] = "nutriquest_save_backup.json"
TEMP_SUFFIX: Final[str] = ".tmp"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    save_filename: str = DEFAULT_SAVE_FILENAME
    backup_filename: str = DEFAULT_BACKUP_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def save_path(self, *, ensure: bool = False) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.save_filename

    def backup_path(self, *, ensure: bool = False) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.backup_filename

    def temp_path(self) -> Path:
        primary = self.save_path()
        return primary.with_name(primary.name + TEMP_SUFFIX)


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("NUTRISYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)
