from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from nutrisync.adapters.savefile import FileSaveStore
from nutrisync.config import StorageConfig
from nutrisync.domain.events import SaveEvent, SaveEvents
from tests.helpers.save_records import OWNER_ID, FakeConnectivity, FakeRemoteGateway, FixedClock

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "NUTRISYNC_DATA_DIR",
        "NUTRISYNC_OWNER_ID",
        "NUTRISYNC_USERNAME",
        "NUTRISYNC_CONFLICT_STRATEGY",
        "NUTRISYNC_AUTOSAVE_INTERVAL",
        "NUTRISYNC_SYNC_INTERVAL",
        "NUTRISYNC_REMOTE_URL",
        "NUTRISYNC_REMOTE_TOKEN",
        "NUTRISYNC_REMOTE_TIMEOUT",
        "NUTRISYNC_PROBE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NUTRISYNC_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def storage(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path / "saves")


@pytest.fixture
def events() -> SaveEvents:
    return SaveEvents()


@pytest.fixture
def recorded_events(events: SaveEvents) -> list[tuple[SaveEvent, dict[str, object]]]:
    seen: list[tuple[SaveEvent, dict[str, object]]] = []
    for event in SaveEvent:

        def handler(_event: SaveEvent = event, **payload: object) -> None:
            seen.append((_event, payload))

        events.subscribe(event, handler)
    return seen


@pytest.fixture
def store(storage: StorageConfig, events: SaveEvents, clock: FixedClock) -> FileSaveStore:
    return FileSaveStore(storage, owner_id=OWNER_ID, events=events, clock=clock)


@pytest.fixture
def gateway() -> FakeRemoteGateway:
    return FakeRemoteGateway()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity(connected=True)
