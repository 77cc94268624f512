"""Durable local save file with a backup copy and crash-safe writes.

Write protocol for ``save``:

1. copy the current primary to the backup (best effort, via a temp file + replace)
2. encode the record and write it to ``<primary>.tmp``, flush and fsync
3. ``os.replace`` the temp file onto the primary

A crash at any point leaves either the previous primary or the new one on disk, never a
mix. File I/O runs in worker threads; the in-memory record is only touched on the
caller's event loop.
"""

from __future__ import annotations

import asyncio
import copy
import os
import shutil
from logging import getLogger
from typing import TYPE_CHECKING

from nutrisync.domain.errors import ConcurrencyRejectedError, DecodeError, SaveIOError
from nutrisync.domain.events import SaveEvent, SaveEvents
from nutrisync.domain.model import new_save_record, utcnow

from .codec import decode, encode

if TYPE_CHECKING:
    from pathlib import Path

    from nutrisync.config.storage import StorageConfig
    from nutrisync.domain.model import Clock, OwnerId, SaveRecord

log = getLogger(__name__)


class FileSaveStore:
    """``SaveStore`` backed by a JSON file plus a backup copy."""

    def __init__(
        self,
        storage: StorageConfig,
        *,
        owner_id: OwnerId,
        username: str = "Player",
        events: SaveEvents | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.owner_id = owner_id
        self.username = username
        self.events = events or SaveEvents()
        self._clock = clock
        self._primary: Path = storage.save_path()
        self._backup: Path = storage.backup_path()
        self._temp: Path = storage.temp_path()
        self._record: SaveRecord | None = None
        self._dirty = False
        self._saving = False
        self._revision = 0
        # false while the primary on disk is known to be unreadable
        self._primary_trusted = True

    @property
    def record(self) -> SaveRecord | None:
        return self._record

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def primary_path(self) -> Path:
        return self._primary

    @property
    def backup_path(self) -> Path:
        return self._backup

    # loading

    def load(self) -> SaveRecord:
        """Load the best available record. Never raises; degradations are logged."""

        if not self._primary.exists():
            log.info("No save file at %s, starting a new save", self._primary)
            record = self._fresh()
            self._primary_trusted = True
            self._install(record, dirty=True)
            return record

        try:
            record = self._read(self._primary)
        except (DecodeError, SaveIOError) as exc:
            log.warning("Save file %s is unusable (%s), trying backup", self._primary, exc)
            self._primary_trusted = False
        else:
            log.info("Loaded save for owner %s from %s", record.owner_id, self._primary)
            self._primary_trusted = True
            self._install(record, dirty=False)
            return record

        try:
            record = self._read(self._backup)
        except (DecodeError, SaveIOError) as exc:
            log.warning("Backup %s is unusable (%s), starting a new save", self._backup, exc)
            record = self._fresh()
        else:
            log.warning("Restored save for owner %s from backup %s", record.owner_id, self._backup)
        # either way the primary needs rewriting on the next save
        self._install(record, dirty=True)
        return record

    def _read(self, path: Path) -> SaveRecord:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise SaveIOError(f"{path} does not exist") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SaveIOError(f"Could not read {path}: {exc}") from exc
        return decode(text)

    def _fresh(self) -> SaveRecord:
        return new_save_record(self.owner_id, username=self.username, now=self._clock())

    def _install(self, record: SaveRecord, *, dirty: bool) -> None:
        self._record = record
        self._dirty = dirty
        self._revision += 1
        self.events.emit(SaveEvent.SAVE_LOADED, record=record)

    # in-memory changes

    def mark_dirty(self) -> None:
        self._dirty = True
        self._revision += 1

    def set_record(self, record: SaveRecord) -> None:
        """Replace the in-memory record wholesale; the new record is unsaved."""
        self._record = record
        self.mark_dirty()

    def snapshot(self) -> SaveRecord:
        return copy.deepcopy(self._require_record())

    def _require_record(self) -> SaveRecord:
        if self._record is None:
            return self.load()
        return self._record

    # writing

    async def save(self, *, create_backup: bool = True) -> SaveRecord:
        """Persist the in-memory record.

        Raises ``ConcurrencyRejectedError`` if a save is already running and
        ``SaveIOError`` if the primary could not be replaced. The dirty flag is only
        cleared when nothing changed while the write was in flight.
        """

        if self._saving:
            raise ConcurrencyRejectedError("save")
        record = self._require_record()
        self._saving = True
        try:
            revision = self._revision
            record.touch(self._clock())
            payload = encode(record)
            if create_backup and self._primary_trusted:
                await asyncio.to_thread(self._copy_to_backup)
            await asyncio.to_thread(self._write_atomic, payload)
        finally:
            self._saving = False

        self._primary_trusted = True
        if self._revision == revision:
            self._dirty = False
        else:
            log.debug("Save record changed during write, keeping it dirty")
        log.info("Saved owner %s to %s", record.owner_id, self._primary)
        self.events.emit(SaveEvent.SAVE_WRITTEN, record=record)
        return record

    def _copy_to_backup(self) -> None:
        if not self._primary.exists():
            return
        staging = self._backup.with_name(self._backup.name + ".tmp")
        try:
            shutil.copyfile(self._primary, staging)
            os.replace(staging, self._backup)
        except OSError as exc:
            log.warning("Could not refresh backup %s: %s", self._backup, exc)
            _unlink_quietly(staging)

    def _write_atomic(self, payload: str) -> None:
        try:
            self._primary.parent.mkdir(parents=True, exist_ok=True)
            with self._temp.open("w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(self._temp, self._primary)
        except OSError as exc:
            _unlink_quietly(self._temp)
            raise SaveIOError(f"Could not write save file {self._primary}: {exc}") from exc

    # housekeeping

    def delete(self) -> None:
        """Remove the primary, backup and temp file, then forget the in-memory record."""

        for path in (self._primary, self._backup, self._temp):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise SaveIOError(f"Could not delete {path}: {exc}") from exc
        self._record = None
        self._dirty = False
        self._revision += 1
        self._primary_trusted = True
        log.info("Deleted save files for owner %s", self.owner_id)
        self.events.emit(SaveEvent.SAVE_DELETED)

    def exists(self) -> bool:
        return self._primary.exists()

    def file_size(self) -> int:
        """Size of the primary save file in bytes, ``0`` when it is missing."""
        try:
            return self._primary.stat().st_size
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise SaveIOError(f"Could not stat {self._primary}: {exc}") from exc


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        log.warning("Could not remove temporary file %s: %s", path, exc)
