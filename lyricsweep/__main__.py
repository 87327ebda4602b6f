"""Command line entry point for lyricsweep."""

from __future__ import annotations

import argparse
import asyncio
from collections import Counter
from collections.abc import Sequence
import json
import sys

from lyricsweep.config import AppConfig, load_config, load_runtime_env
from lyricsweep.logging import configure_logging, get_logger
from lyricsweep.runtime import build_runtime
from lyricsweep.state.store import RetryStateStore
from lyricsweep.workers.lyrics_scheduler import LyricsTaskScheduler

logger = get_logger(__name__)

EX_OK = 0
EX_INTERRUPTED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lyricsweep",
        description="Download missing lyrics and upgrade plain lyrics to synced lyrics",
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("run", help="Execute a single lyrics pass and print the summary")
    subcommands.add_parser("serve", help="Run the lyrics pass on the configured interval")
    state = subcommands.add_parser("state", help="Show the persisted retry state")
    state.add_argument("--json", action="store_true", help="Emit machine-readable output")
    return parser


async def _run_once(config: AppConfig) -> int:
    runtime = build_runtime(config)

    def _progress(value: float) -> None:
        logger.debug("Lyrics task progress: %.1f%%", value)

    summary = await runtime.task.run(_progress)
    print(summary.describe())
    return EX_OK


async def _serve(config: AppConfig) -> int:
    runtime = build_runtime(config)
    scheduler = LyricsTaskScheduler(runtime.task, interval_seconds=config.interval_hours * 3600)
    await scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
    return EX_OK


async def _show_state(config: AppConfig, *, as_json: bool) -> int:
    store = RetryStateStore(config.task.state_path)
    state = await store.load()
    outcomes = Counter(entry.last_outcome.value for entry in state.entries.values())
    if as_json:
        print(
            json.dumps(
                {
                    "path": str(store.path),
                    "cursor": state.cursor,
                    "entries": len(state.entries),
                    "outcomes": dict(sorted(outcomes.items())),
                }
            )
        )
        return EX_OK
    print(f"State file: {store.path}")
    print(f"Cursor: {state.cursor}")
    print(f"Entries: {len(state.entries)}")
    for outcome, count in sorted(outcomes.items()):
        print(f"  {outcome}: {count}")
    return EX_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config(load_runtime_env(env_file=args.env_file))
    configure_logging(args.log_level or config.logging.level, config.logging.log_file)

    try:
        if args.command == "run":
            return asyncio.run(_run_once(config))
        if args.command == "serve":
            return asyncio.run(_serve(config))
        return asyncio.run(_show_state(config, as_json=args.json))
    except KeyboardInterrupt:
        logger.info("Interrupted; retry state kept at the last flush")
        return EX_INTERRUPTED


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
