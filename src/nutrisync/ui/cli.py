from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from nutrisync.app import build_context
from nutrisync.config import ConfigurationError, configure_logging, get_remote_config
from nutrisync.domain.model import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from nutrisync.app import SaveContext
    from nutrisync.domain.sync import SyncResult

    type ContextFactory = Callable[..., SaveContext]

log = logging.getLogger(__name__)

REMOTE_COMMANDS = frozenset({"sync", "restore"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the local NutriQuest save")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Summarise the current save")
    save = subparsers.add_parser("save", help="Write the save file now")
    save.add_argument(
        "--no-backup",
        action="store_true",
        help="Skip refreshing the backup copy before writing",
    )
    subparsers.add_parser("sync", help="Merge with the remote save and upload the result")
    subparsers.add_parser("restore", help="Merge the remote save into the local one")
    reset = subparsers.add_parser("reset", help="Delete the save file and its backup")
    reset.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deletion of local progress",
    )

    run = subparsers.add_parser("run", help="Run the autosave/autosync scheduler")
    run.add_argument(
        "--seconds",
        type=float,
        help="Stop after this many seconds (default: until Ctrl+C)",
    )
    run.add_argument(
        "--tick",
        type=float,
        default=None,
        help="Scheduler tick in seconds (defaults to config)",
    )

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "run":
        if args.seconds is not None and args.seconds <= 0:
            raise ValueError("--seconds must be positive")
        if args.tick is not None and args.tick <= 0:
            raise ValueError("--tick must be positive")
    if args.command == "reset" and not args.yes:
        raise ValueError("Refusing to delete local progress without --yes")


def _describe(context: SaveContext) -> None:
    record = context.store.record
    if record is None:
        log.info("No save loaded")
        return
    now = utcnow()
    unlocked = [tower.tower_id for tower in record.towers if tower.is_unlocked]
    earned = [entry.achievement_id for entry in record.achievements if entry.is_earned]
    log.info("Owner: %s (%s)", record.owner_id, record.user.username)
    log.info("Last saved: %s", record.last_save_time.isoformat())
    log.info(
        "Tower %s, highest score %s, unlocked towers %s",
        record.user.current_tower,
        record.user.highest_score,
        unlocked,
    )
    log.info(
        "Stamina %d/%d (next point in %ds)",
        record.stamina.current,
        record.stamina.maximum,
        int(record.stamina.time_until_next_regen(now).total_seconds()),
    )
    log.info("Achievements earned: %s", earned)
    log.info("Recent attempts: %d", len(record.recent_attempts))
    for cooldown in record.cooldowns:
        remaining = int(cooldown.remaining(now).total_seconds())
        log.info("Tower %s cooldown: %ss remaining", cooldown.tower_id, remaining)


async def _sync(context: SaveContext, *, push: bool) -> SyncResult:
    await context.refresh_connectivity()
    if push:
        result = await context.sync_to_remote()
    else:
        result = await context.sync_from_remote()
    await context.shutdown()
    return result


def _check_sync(result: SyncResult) -> None:
    if not result.success:
        raise RuntimeError(f"Sync {result.status}: {result.message}")
    log.info("Sync finished (pushed=%s)", result.pushed)


async def _run_scheduler(context: SaveContext, *, seconds: float | None, tick: float | None) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    if seconds is not None:
        loop.call_later(seconds, stop.set)
    try:
        loop.add_signal_handler(SIGINT, stop.set)
    except (NotImplementedError, RuntimeError):
        log.debug("Signal handlers unavailable, relying on --seconds or Ctrl+C")
    await context.run(stop, tick_seconds=tick)


def main(
    argv: Sequence[str] | None = None,
    *,
    context_factory: ContextFactory = build_context,
) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    context: SaveContext
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
        if parsed_args.command in REMOTE_COMMANDS:
            context = context_factory(remote=get_remote_config(required=True))
        else:
            context = context_factory()
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "reset":
            asyncio.run(context.reset())
            log.info("Local save and backup deleted")
            return

        context.startup()
        if parsed_args.command == "show":
            _describe(context)
        elif parsed_args.command == "save":
            record = asyncio.run(context.store.save(create_backup=not parsed_args.no_backup))
            log.info("Saved at %s", record.last_save_time.isoformat())
        elif parsed_args.command == "sync":
            _check_sync(asyncio.run(_sync(context, push=True)))
        elif parsed_args.command == "restore":
            _check_sync(asyncio.run(_sync(context, push=False)))
        elif parsed_args.command == "run":
            asyncio.run(
                _run_scheduler(context, seconds=parsed_args.seconds, tick=parsed_args.tick)
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
