"""Command-line interface for timeline-sync.

Subcommands:

- ``sync``   -- run one cycle (bidirectional unless ``--to-timeline``).
- ``watch``  -- keep running; sync after changes and on an interval.
- ``status`` -- show the timeline document and drift baseline.
- ``init``   -- write a starter config file.

All diagnostics go to stderr; stdout carries the report (or JSON with
``--json``).  A failed command prints one error line and exits 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import load_config
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import UnifiedConfig
from .errors import TimelineSyncError
from .logger import setup_logging
from .session import build_reconciler, status_snapshot
from .sync.models import CycleResult, Direction
from .sync.reporter import (
    format_cycle_report,
    format_status,
    notification_messages,
    report_to_json,
)
from .sync.scheduler import CycleScheduler, IntervalTrigger, PollingChangeTrigger

logger = logging.getLogger(__name__)


def describe_error(exc: BaseException) -> str:
    """Collapse an exception into a single line for the terminal."""
    if isinstance(exc, ValidationError):
        parts = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return "Invalid configuration: " + "; ".join(parts)
    text = " ".join(str(exc).split())
    return text or type(exc).__name__


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_sync(args: argparse.Namespace, config: UnifiedConfig) -> int:
    direction = (
        Direction.TO_TIMELINE if args.to_timeline else Direction.BIDIRECTIONAL
    )
    reconciler = build_reconciler(config.sync)
    result = reconciler.run_cycle(direction)

    if args.json:
        print(json.dumps(report_to_json(result), indent=2))
    else:
        print(format_cycle_report(result))
    return 0


def cmd_status(args: argparse.Namespace, config: UnifiedConfig) -> int:
    status = status_snapshot(build_reconciler(config.sync))
    if args.json:
        print(json.dumps(status, indent=2))
    else:
        print(format_status(status))
    return 0


async def _watch(config: UnifiedConfig) -> None:
    sync = config.sync
    root = Path.cwd().resolve()
    timeline = (root / sync.timeline_path).resolve()
    notes = (root / sync.notes_path).resolve()
    reconciler = build_reconciler(sync, root)

    def _notify(result: CycleResult) -> None:
        for message in notification_messages(result, sync.notifications):
            logger.info(message)

    scheduler = CycleScheduler(
        reconciler.run_cycle,
        debounce_seconds=sync.debounce_seconds,
        timeline_path=timeline,
        notes_path=notes,
        on_result=_notify,
    )

    triggers = [
        PollingChangeTrigger(scheduler, timeline, notes, sync.poll_interval).run()
    ]
    if sync.auto_sync:
        triggers.append(
            IntervalTrigger(scheduler, sync.auto_sync_interval).run()
        )

    logger.info("Watching %s and %s (Ctrl+C to stop)", timeline, notes)
    scheduler.request(Direction.BIDIRECTIONAL)
    tasks = [asyncio.create_task(t) for t in triggers]
    try:
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            task.cancel()
        await scheduler.stop()


def cmd_watch(args: argparse.Namespace, config: UnifiedConfig) -> int:
    try:
        asyncio.run(_watch(config))
    except KeyboardInterrupt:
        print("\nStopped.", file=sys.stderr)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    path = ensure_config(Path(args.path) if args.path else None)
    print(f"Config file: {path}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeline-sync",
        description="Synchronise a folder of notes with a plain-text timeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write the timeline and apply timeline edits back to the notes
  timeline-sync sync

  # Preview without touching any file
  timeline-sync sync --dry-run

  # Only regenerate the timeline
  timeline-sync --timeline plan.mw --notes projects sync --to-timeline

  # Keep both sides in sync while editing
  timeline-sync watch
        """,
    )
    parser.add_argument(
        "--timeline",
        help="Timeline document path (overrides TIMELINE_SYNC_TIMELINE_PATH and config files)",
    )
    parser.add_argument(
        "--notes",
        help="Notes folder path (overrides TIMELINE_SYNC_NOTES_PATH and config files)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"timeline-sync version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run one sync cycle")
    sync_parser.add_argument(
        "--to-timeline",
        action="store_true",
        help="Only write the timeline; do not update notes",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing anything",
    )
    sync_parser.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    sync_parser.set_defaults(func=cmd_sync)

    watch_parser = subparsers.add_parser(
        "watch", help="Sync continuously after changes"
    )
    watch_parser.set_defaults(func=cmd_watch)

    status_parser = subparsers.add_parser(
        "status", help="Show timeline and sync state"
    )
    status_parser.add_argument(
        "--json", action="store_true", help="Print status as JSON"
    )
    status_parser.set_defaults(func=cmd_status)

    init_parser = subparsers.add_parser(
        "init", help="Create a starter config file"
    )
    init_parser.add_argument(
        "--path", help="Config file to create (default: ./.timeline_sync/config.yml)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``timeline-sync`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "init":
            setup_logging(
                mode="cli",
                debug=args.debug,
                log_file=args.log_file,
                debug_format=args.log_format,
            )
            return cmd_init(args)

        load_dotenv()
        config = load_config(
            timeline_path=args.timeline,
            notes_path=args.notes,
            dry_run=getattr(args, "dry_run", False),
            raw_config=load_hierarchical_config(),
        )
        setup_logging(
            mode="cli",
            debug=args.debug,
            log_file=args.log_file or config.logging.file,
            debug_format=args.log_format,
            level=config.logging.level,
        )
        return args.func(args, config)
    except (TimelineSyncError, ValueError, OSError, yaml.YAMLError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {describe_error(exc)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
