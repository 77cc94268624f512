from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from nutrisync.adapters.cloud import HttpRemoteSaveGateway
from nutrisync.adapters.connectivity import ConnectivityMonitor
from nutrisync.adapters.savefile import decode
from nutrisync.app import SaveContext, build_context
from nutrisync.config import ProfileConfig, RemoteConfig, SyncConfig
from nutrisync.domain.errors import ConcurrencyRejectedError, SaveIOError
from nutrisync.domain.events import SaveEvent
from tests.helpers.save_records import FakeConnectivity

if TYPE_CHECKING:
    from nutrisync.adapters.savefile import FileSaveStore
    from nutrisync.config import StorageConfig
    from nutrisync.domain.events import SaveEvents
    from tests.helpers.save_records import FakeRemoteGateway, FixedClock

FAST = SyncConfig(
    autosave_interval=timedelta(seconds=120),
    sync_interval=timedelta(minutes=5),
    unsaved_alert_after=timedelta(minutes=5),
)


@pytest.fixture
def offline() -> FakeConnectivity:
    return FakeConnectivity(connected=False)


@pytest.fixture
def context(
    store: FileSaveStore,
    gateway: FakeRemoteGateway,
    offline: FakeConnectivity,
    events: SaveEvents,
    clock: FixedClock,
) -> SaveContext:
    return build_context(
        sync_config=FAST,
        events=events,
        store=store,
        gateway=gateway,
        connectivity=offline,
        clock=clock,
    )


def test_tick_regenerates_stamina_and_autosaves(
    context: SaveContext,
    store: FileSaveStore,
    clock: FixedClock,
) -> None:
    record = context.startup()
    record.stamina.current = 50
    assert asyncio.run(context.save())
    assert store.is_dirty is False

    clock.advance(seconds=60)
    asyncio.run(context.tick())
    assert record.stamina.current == 51
    assert store.is_dirty is True

    clock.advance(seconds=60)
    asyncio.run(context.tick())

    assert record.stamina.current == 52
    assert store.is_dirty is False
    on_disk = decode(store.primary_path.read_text(encoding="utf-8"))
    assert on_disk.stamina.current == 52


def test_tick_without_loaded_save_does_nothing(context: SaveContext, store: FileSaveStore) -> None:
    asyncio.run(context.tick())

    assert store.record is None
    assert not store.exists()


def test_repeated_save_failures_raise_one_alert(
    store: FileSaveStore,
    gateway: FakeRemoteGateway,
    offline: FakeConnectivity,
    events: SaveEvents,
    clock: FixedClock,
    monkeypatch: pytest.MonkeyPatch,
    recorded_events: list[tuple[SaveEvent, dict[str, object]]],
) -> None:
    context = build_context(
        sync_config=SyncConfig(
            autosave_interval=timedelta(seconds=60),
            unsaved_alert_after=timedelta(minutes=5),
        ),
        events=events,
        store=store,
        gateway=gateway,
        connectivity=offline,
        clock=clock,
    )
    context.startup()
    disk_full = True
    original_save = store.save

    async def flaky_save(**kwargs: bool) -> object:
        if disk_full:
            raise SaveIOError("disk full")
        return await original_save(**kwargs)

    monkeypatch.setattr(store, "save", flaky_save)

    for _ in range(10):
        clock.advance(seconds=60)
        asyncio.run(context.tick())

    alerts = [payload for event, payload in recorded_events if event is SaveEvent.UNSAVED_DATA_ALERT]
    assert len(alerts) == 1
    assert "6 failed attempts" in str(alerts[0]["message"])
    assert context.failed_saves == 10
    assert store.is_dirty is True

    disk_full = False
    clock.advance(seconds=60)
    asyncio.run(context.tick())

    assert context.failed_saves == 0
    assert store.is_dirty is False
    assert store.exists()


def test_connectivity_edge_triggers_sync_on_next_tick(
    context: SaveContext,
    gateway: FakeRemoteGateway,
    offline: FakeConnectivity,
    clock: FixedClock,
) -> None:
    context.startup()
    asyncio.run(context.tick())
    assert gateway.pushed == []

    offline.set(True)
    clock.advance(seconds=1)
    asyncio.run(context.tick())
    assert len(gateway.pushed) == 1

    clock.advance(seconds=10)
    asyncio.run(context.tick())
    assert len(gateway.pushed) == 1


def test_probe_runs_once_per_sync_interval(
    store: FileSaveStore,
    gateway: FakeRemoteGateway,
    offline: FakeConnectivity,
    clock: FixedClock,
) -> None:
    probes: list[object] = []

    async def probe() -> bool:
        probes.append(clock.now)
        offline.set(True)
        return True

    context = build_context(
        sync_config=FAST,
        store=store,
        gateway=gateway,
        connectivity=offline,
        probe=probe,
        clock=clock,
    )
    context.startup()

    asyncio.run(context.tick())
    clock.advance(minutes=1)
    asyncio.run(context.tick())
    clock.advance(minutes=4)
    asyncio.run(context.tick())

    assert len(probes) == 2
    assert context.connectivity.is_connected


def test_background_and_shutdown_save_only_when_dirty(
    context: SaveContext,
    store: FileSaveStore,
) -> None:
    context.startup()

    assert asyncio.run(context.on_background()) is True
    assert store.exists()
    assert asyncio.run(context.shutdown()) is False

    store.mark_dirty()
    assert asyncio.run(context.shutdown()) is True
    assert store.is_dirty is False


def test_save_in_progress_is_skipped(context: SaveContext, store: FileSaveStore) -> None:
    context.startup()

    async def scenario() -> tuple[bool, bool]:
        first = asyncio.create_task(context.save())
        await asyncio.sleep(0)
        second = await context.save()
        return await first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert context.failed_saves == 0


def test_reset_deletes_files_and_starts_fresh(
    context: SaveContext,
    store: FileSaveStore,
) -> None:
    record = context.startup()
    record.user.highest_score = 77
    asyncio.run(context.save())

    fresh = asyncio.run(context.reset())

    assert fresh.user.highest_score == 0
    assert store.record is fresh
    assert store.is_dirty is True
    assert not store.exists()
    assert not store.backup_path.exists()


def test_reset_is_rejected_while_saving(context: SaveContext) -> None:
    context.startup()

    async def scenario() -> None:
        task = asyncio.create_task(context.save())
        await asyncio.sleep(0)
        with pytest.raises(ConcurrencyRejectedError):
            await context.reset()
        await task

    asyncio.run(scenario())


def test_run_ticks_until_stopped_then_saves(context: SaveContext, store: FileSaveStore) -> None:
    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(context.run(stop, tick_seconds=0.01))
        await asyncio.sleep(0.05)
        stop.set()
        await task

    asyncio.run(scenario())

    assert store.exists()
    assert store.is_dirty is False


def test_build_context_wires_defaults_from_config(
    storage: StorageConfig,
    clock: FixedClock,
) -> None:
    context = build_context(
        storage=storage,
        profile=ProfileConfig(owner_id="device-9", default_username="Robin"),
        remote=RemoteConfig(),
        clock=clock,
    )

    record = context.startup()

    assert record.owner_id == "device-9"
    assert record.user.username == "Robin"
    assert isinstance(context.connectivity, ConnectivityMonitor)
    assert isinstance(context.coordinator.gateway, HttpRemoteSaveGateway)
    assert context.coordinator.gateway.is_available() is False
    assert asyncio.run(context.refresh_connectivity()) is False
