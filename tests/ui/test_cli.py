from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from nutrisync.adapters.savefile import decode
from nutrisync.app import SaveContext, build_context
from nutrisync.config import ProfileConfig, SyncConfig
from nutrisync.domain.model import ConflictStrategy
from nutrisync.ui import cli
from tests.helpers.save_records import OWNER_ID, FakeConnectivity, FakeRemoteGateway, make_record

if TYPE_CHECKING:
    from nutrisync.config import StorageConfig

type ContextFactory = Callable[..., SaveContext]


@pytest.fixture
def remote_gateway() -> FakeRemoteGateway:
    return FakeRemoteGateway()


@pytest.fixture
def factory_calls() -> list[dict[str, object]]:
    return []


@pytest.fixture
def context_factory(
    storage: StorageConfig,
    remote_gateway: FakeRemoteGateway,
    factory_calls: list[dict[str, object]],
) -> ContextFactory:
    def factory(**kwargs: object) -> SaveContext:
        factory_calls.append(kwargs)
        return build_context(
            storage=storage,
            profile=ProfileConfig(owner_id=OWNER_ID),
            sync_config=SyncConfig(conflict_strategy=ConflictStrategy.MERGE),
            gateway=remote_gateway,
            connectivity=FakeConnectivity(connected=True),
        )

    return factory


def _exit_code(excinfo: pytest.ExceptionInfo[SystemExit]) -> object:
    return excinfo.value.code


@pytest.mark.parametrize(
    "argv",
    [
        ["run", "--seconds", "0"],
        ["run", "--tick", "-1"],
        ["reset"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(
    argv: list[str],
    context_factory: ContextFactory,
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv, context_factory=context_factory)

    assert _exit_code(excinfo) == 2


def test_unknown_command_is_rejected_by_argparse() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["explode"])

    assert _exit_code(excinfo) == 2


def test_sync_without_remote_configuration_exits(
    context_factory: ContextFactory,
    factory_calls: list[dict[str, object]],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync"], context_factory=context_factory)

    assert _exit_code(excinfo) == 2
    assert factory_calls == []


def test_save_writes_file(
    context_factory: ContextFactory,
    storage: StorageConfig,
) -> None:
    cli.main(["save", "--no-backup"], context_factory=context_factory)

    path = storage.save_path()
    assert path.exists()
    assert decode(path.read_text(encoding="utf-8")).owner_id == OWNER_ID
    assert not storage.backup_path().exists()


def test_show_logs_summary(
    context_factory: ContextFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level("INFO"):
        cli.main(["show"], context_factory=context_factory)

    assert f"Owner: {OWNER_ID}" in caplog.text
    assert "Stamina 100/100" in caplog.text


def test_sync_pushes_and_saves(
    context_factory: ContextFactory,
    remote_gateway: FakeRemoteGateway,
    factory_calls: list[dict[str, object]],
    storage: StorageConfig,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("NUTRISYNC_REMOTE_URL", "https://saves.example.test")
    monkeypatch.setenv("NUTRISYNC_REMOTE_TOKEN", "token")
    remote_gateway.stored = make_record(highest_score=250, current_tower=4)

    cli.main(["sync"], context_factory=context_factory)

    assert "remote" in factory_calls[0]
    assert remote_gateway.pushed[-1].user.highest_score == 250
    on_disk = decode(storage.save_path().read_text(encoding="utf-8"))
    assert on_disk.user.current_tower == 4


def test_failed_sync_exits_with_error(
    context_factory: ContextFactory,
    remote_gateway: FakeRemoteGateway,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("NUTRISYNC_REMOTE_URL", "https://saves.example.test")
    monkeypatch.setenv("NUTRISYNC_REMOTE_TOKEN", "token")
    remote_gateway.fail_fetch = True

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["restore"], context_factory=context_factory)

    assert _exit_code(excinfo) == 1


def test_reset_with_confirmation_deletes_save(
    context_factory: ContextFactory,
    storage: StorageConfig,
) -> None:
    cli.main(["save"], context_factory=context_factory)
    assert storage.save_path().exists()

    cli.main(["reset", "--yes"], context_factory=context_factory)

    assert not storage.save_path().exists()
