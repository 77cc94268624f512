"""Application orchestration: one explicit context owning the save services."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from nutrisync.adapters.cloud import HttpRemoteSaveGateway
from nutrisync.adapters.connectivity import ConnectivityMonitor
from nutrisync.adapters.savefile import FileSaveStore
from nutrisync.config import (
    get_profile_config,
    get_remote_config,
    get_storage_config,
    get_sync_config,
)
from nutrisync.domain.errors import ConcurrencyRejectedError, SaveIOError
from nutrisync.domain.events import SaveEvent, SaveEvents
from nutrisync.domain.model import utcnow
from nutrisync.domain.sync import SyncCoordinator

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from nutrisync.config import ProfileConfig, RemoteConfig, StorageConfig, SyncConfig
    from nutrisync.domain.model import Clock, SaveRecord
    from nutrisync.domain.ports import ConnectivitySignal, RemoteSaveGateway, SaveStore
    from nutrisync.domain.sync import SyncResult

type Probe = Callable[[], Awaitable[bool]]


log = getLogger(__name__)


class SaveContext:
    """Owns the store, the sync coordinator and the timers that drive them.

    Gameplay code mutates ``context.record`` and calls ``context.store.mark_dirty()``;
    persistence and sync then happen from ``tick`` and the lifecycle hooks. Only one
    task should drive ``tick``.
    """

    def __init__(
        self,
        *,
        sync_config: SyncConfig,
        events: SaveEvents,
        store: SaveStore,
        coordinator: SyncCoordinator,
        connectivity: ConnectivitySignal,
        probe: Probe | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.sync_config = sync_config
        self.events = events
        self.store = store
        self.coordinator = coordinator
        self.connectivity = connectivity
        self._probe = probe
        self._clock = clock
        self._started = False
        self._last_save_attempt: datetime | None = None
        self._dirty_since: datetime | None = None
        self._failed_saves = 0
        self._alerted = False
        self._last_probe_at: datetime | None = None

    @property
    def record(self) -> SaveRecord | None:
        return self.store.record

    @property
    def failed_saves(self) -> int:
        return self._failed_saves

    def startup(self) -> SaveRecord:
        """Load the save and start listening for connectivity edges."""

        record = self.store.load()
        if not self._started:
            self.connectivity.subscribe_connected(self.coordinator.notify_connected)
            self._started = True
        self._last_save_attempt = self._clock()
        self._dirty_since = None
        return record

    # scheduler

    async def tick(self, now: datetime | None = None) -> None:
        """Run one scheduler step: regen, autosave, unsaved-data alert, autosync."""

        now = now or self._clock()
        record = self.store.record
        if record is None:
            log.debug("No save loaded, skipping tick")
            return

        added = record.stamina.regenerate(now)
        if added:
            log.debug("Regenerated %d stamina", added)
            self.store.mark_dirty()

        if self.store.is_dirty:
            if self._dirty_since is None:
                self._dirty_since = now
            if self._autosave_due(now):
                await self.save(now)
        self._check_unsaved(now)

        if self._probe is not None and self._probe_due(now):
            self._last_probe_at = now
            await self._probe()
        await self.coordinator.maybe_sync(connected=self.connectivity.is_connected, now=now)

    def _autosave_due(self, now: datetime) -> bool:
        if self._last_save_attempt is None:
            return True
        return now - self._last_save_attempt >= self.sync_config.autosave_interval

    def _probe_due(self, now: datetime) -> bool:
        if self._last_probe_at is None:
            return True
        return now - self._last_probe_at >= self.sync_config.sync_interval

    def _check_unsaved(self, now: datetime) -> None:
        if not self.store.is_dirty:
            self._dirty_since = None
            return
        if self._alerted or self._failed_saves == 0 or self._dirty_since is None:
            return
        unsaved_for = now - self._dirty_since
        if unsaved_for < self.sync_config.unsaved_alert_after:
            return
        message = (
            f"Progress has not been saved for {int(unsaved_for.total_seconds())} seconds "
            f"after {self._failed_saves} failed attempts"
        )
        log.error(message)
        self._alerted = True
        self.events.emit(SaveEvent.UNSAVED_DATA_ALERT, message=message)

    async def save(self, now: datetime | None = None) -> bool:
        """Save now. Returns whether the write happened; failures are logged, not raised."""

        self._last_save_attempt = now or self._clock()
        try:
            await self.store.save()
        except ConcurrencyRejectedError:
            log.debug("Save already in progress, skipping")
            return False
        except SaveIOError as exc:
            self._failed_saves += 1
            log.warning("Save failed (%d in a row): %s", self._failed_saves, exc)
            return False
        self._failed_saves = 0
        self._alerted = False
        if not self.store.is_dirty:
            self._dirty_since = None
        return True

    async def run(self, stop: asyncio.Event, *, tick_seconds: float | None = None) -> None:
        """Tick until ``stop`` is set, then run the shutdown save."""

        interval = tick_seconds or self.sync_config.tick_seconds
        if not self._started:
            self.startup()
        log.info("Save scheduler running (tick=%ss)", interval)
        while not stop.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                continue
        await self.shutdown()

    # lifecycle

    async def on_background(self) -> bool:
        if not self.store.is_dirty:
            return False
        log.info("Saving on background")
        return await self.save()

    async def shutdown(self) -> bool:
        if not self.store.is_dirty:
            return False
        log.info("Saving before shutdown")
        return await self.save()

    async def refresh_connectivity(self) -> bool:
        """Probe now (when a probe is wired) and report the connectivity state."""
        if self._probe is not None:
            self._last_probe_at = self._clock()
            await self._probe()
        return self.connectivity.is_connected

    async def sync_to_remote(self) -> SyncResult:
        return await self.coordinator.sync_to_remote()

    async def sync_from_remote(self) -> SyncResult:
        return await self.coordinator.sync_from_remote()

    async def reset(self) -> SaveRecord:
        """Delete the save files and start over with a fresh, unsaved record."""

        if self.store.is_saving:
            raise ConcurrencyRejectedError("reset")
        self.store.delete()
        self._failed_saves = 0
        self._alerted = False
        self._dirty_since = None
        log.info("Save data reset")
        return self.store.load()


def build_context(
    *,
    storage: StorageConfig | None = None,
    profile: ProfileConfig | None = None,
    sync_config: SyncConfig | None = None,
    remote: RemoteConfig | None = None,
    events: SaveEvents | None = None,
    store: SaveStore | None = None,
    gateway: RemoteSaveGateway | None = None,
    connectivity: ConnectivitySignal | None = None,
    probe: Probe | None = None,
    clock: Clock = utcnow,
) -> SaveContext:
    """Wire a ``SaveContext`` from configuration; any collaborator can be injected."""

    effective_sync = sync_config or get_sync_config()
    effective_events = events or SaveEvents()

    effective_profile = profile or get_profile_config()
    if store is None:
        store = FileSaveStore(
            storage or get_storage_config(),
            owner_id=effective_profile.owner_id,
            username=effective_profile.default_username,
            events=effective_events,
            clock=clock,
        )

    if connectivity is None or gateway is None:
        effective_remote = remote or get_remote_config()
        if connectivity is None:
            monitor = ConnectivityMonitor(config=effective_remote)
            connectivity = monitor
            if probe is None and effective_remote.is_configured:
                probe = monitor.probe
        if gateway is None:
            gateway = HttpRemoteSaveGateway(
                owner_id=effective_profile.owner_id,
                config=effective_remote,
                connectivity=connectivity,
            )

    coordinator = SyncCoordinator(
        store=store,
        gateway=gateway,
        events=effective_events,
        strategy=effective_sync.conflict_strategy,
        min_interval=effective_sync.sync_interval,
        clock=clock,
    )
    log.debug("Built save context (strategy=%s)", effective_sync.conflict_strategy)
    return SaveContext(
        sync_config=effective_sync,
        events=effective_events,
        store=store,
        coordinator=coordinator,
        connectivity=connectivity,
        probe=probe,
        clock=clock,
    )

