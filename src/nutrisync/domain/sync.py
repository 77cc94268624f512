"""Application service reconciling the local save with its remote replica."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from nutrisync.domain.errors import (
    ConcurrencyRejectedError,
    RemoteError,
    RemoteUnavailableError,
    SaveIOError,
)
from nutrisync.domain.events import SaveEvent, SaveEvents
from nutrisync.domain.model import ConflictStrategy, SyncState, SyncStatus, utcnow
from nutrisync.domain.reconciliation import resolve

DEFAULT_SYNC_INTERVAL = timedelta(minutes=5)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from nutrisync.domain.model import Clock, SaveRecord
    from nutrisync.domain.ports import RemoteSaveGateway, SaveStore
    from nutrisync.domain.reconciliation import ResolveConflict


@dataclass(slots=True)
class SyncResult:
    """Outcome of a sync run."""

    status: SyncStatus
    record: SaveRecord | None = None
    pushed: bool = False
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.status is SyncStatus.COMPLETED


type SyncCallback = Callable[[SyncResult], None]


log = getLogger(__name__)


class SyncCoordinator:
    """Drive ``pull -> resolve -> persist -> push`` with at most one sync in flight.

    The coordinator works copy-in/copy-out: it snapshots the local record, computes a
    resolved record and hands the new record to the store with ``set_record``. The
    merged record is always persisted locally before it is pushed. Errors from the
    gateway or the store are reported through ``SyncResult`` and the events hub and
    never raised to the caller.
    """

    def __init__(
        self,
        *,
        store: SaveStore,
        gateway: RemoteSaveGateway,
        events: SaveEvents | None = None,
        strategy: ConflictStrategy = ConflictStrategy.USE_NEWER,
        min_interval: timedelta = DEFAULT_SYNC_INTERVAL,
        resolver: ResolveConflict = resolve,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.events = events or SaveEvents()
        self.strategy = strategy
        self.min_interval = min_interval
        self._resolver = resolver
        self._clock = clock
        self._state = SyncState.IDLE
        self._last_completed_at: datetime | None = None
        self._connect_pending = False
        self._was_connected = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state is SyncState.SYNCING

    @property
    def last_completed_at(self) -> datetime | None:
        return self._last_completed_at

    # triggers

    def notify_connected(self) -> None:
        """Connectivity went from unavailable to available; sync on the next tick."""
        self._connect_pending = True

    def notify_connectivity(self, connected: bool) -> None:
        if connected and not self._was_connected:
            self.notify_connected()
        self._was_connected = connected

    @property
    def sync_pending(self) -> bool:
        return self._connect_pending

    def is_due(self, now: datetime | None = None) -> bool:
        if self.is_syncing:
            return False
        if self._last_completed_at is None:
            return True
        return (now or self._clock()) - self._last_completed_at >= self.min_interval

    async def maybe_sync(self, *, connected: bool, now: datetime | None = None) -> SyncResult | None:
        """Run ``sync_to_remote`` when connected and either an edge is pending or due."""

        if not connected or self.is_syncing:
            return None
        if not (self._connect_pending or self.is_due(now)):
            return None
        if not self.gateway.is_available():
            log.debug("Remote save gateway unavailable, background sync skipped")
            return None
        self._connect_pending = False
        return await self.sync_to_remote()

    # operations

    async def sync_to_remote(self, on_complete: SyncCallback | None = None) -> SyncResult:
        """Pull the remote record, resolve, persist locally, then push the result."""
        return await self._run(push=True, on_complete=on_complete)

    async def sync_from_remote(self, on_complete: SyncCallback | None = None) -> SyncResult:
        """Pull the remote record, resolve and persist locally without pushing."""
        return await self._run(push=False, on_complete=on_complete)

    async def _run(self, *, push: bool, on_complete: SyncCallback | None) -> SyncResult:
        if self.is_syncing:
            log.debug("Sync already in progress, dropping trigger")
            return self._finish(
                SyncResult(SyncStatus.REJECTED, message="sync in progress"),
                on_complete,
                notify=False,
            )

        if not self.gateway.is_available():
            log.warning("Remote save gateway unavailable, skipping sync")
            return self._finish(
                SyncResult(SyncStatus.UNAVAILABLE, message="remote save unavailable"),
                on_complete,
            )

        self._state = SyncState.SYNCING
        self.events.emit(SaveEvent.SYNC_STARTED)
        try:
            result = await self._sync(push=push)
        finally:
            self._state = SyncState.IDLE
            self._last_completed_at = self._clock()
        return self._finish(result, on_complete)

    async def _sync(self, *, push: bool) -> SyncResult:
        local = self.store.snapshot()
        direction = "to" if push else "from"
        log.info("Starting sync %s remote for owner %s", direction, local.owner_id)

        try:
            remote = await self.gateway.fetch()
        except (RemoteError, RemoteUnavailableError) as exc:
            return SyncResult(SyncStatus.FAILED, message=f"fetch failed: {exc}")
        except Exception as exc:
            log.exception("Unexpected error fetching remote save")
            return SyncResult(SyncStatus.FAILED, message=f"fetch failed: {exc!r}")

        if remote is None and not push:
            log.info("No remote save found, nothing to restore")
            return SyncResult(SyncStatus.COMPLETED, record=local)

        merged = local
        if remote is not None:
            merged = self._resolver(local, remote, self.strategy, now=self._clock())
            self.store.set_record(merged)
            try:
                await self.store.save()
            except ConcurrencyRejectedError:
                # the in-flight write leaves the record dirty; the next autosave catches up
                log.debug("Local save busy during sync, merged record stays dirty")
            except SaveIOError as exc:
                return SyncResult(SyncStatus.FAILED, record=merged, message=f"local save failed: {exc}")

        if not push:
            return SyncResult(SyncStatus.COMPLETED, record=merged)

        try:
            await self.gateway.push(merged)
        except (RemoteError, RemoteUnavailableError) as exc:
            return SyncResult(SyncStatus.FAILED, record=merged, message=f"push failed: {exc}")
        except Exception as exc:
            log.exception("Unexpected error pushing save")
            return SyncResult(SyncStatus.FAILED, record=merged, message=f"push failed: {exc!r}")

        return SyncResult(SyncStatus.COMPLETED, record=merged, pushed=True)

    def _finish(
        self,
        result: SyncResult,
        on_complete: SyncCallback | None,
        *,
        notify: bool = True,
    ) -> SyncResult:
        if notify:
            if result.success:
                log.info("Sync completed (pushed=%s)", result.pushed)
                self.events.emit(SaveEvent.SYNC_COMPLETED, success=True)
            else:
                log.error("Sync failed: %s", result.message)
                if result.status is SyncStatus.FAILED:
                    self.events.emit(SaveEvent.SYNC_COMPLETED, success=False)
                self.events.emit(SaveEvent.SYNC_ERROR, message=result.message or "")
        if on_complete is not None:
            on_complete(result)
        return result
