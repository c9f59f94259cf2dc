"""CLI commands for parsing, tailing, exporting and serving a session."""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from rwmapper.api.export import build_export, write_export
from rwmapper.collector.driver import StreamDriver
from rwmapper.config.logging import setup_logging
from rwmapper.config.settings import Settings
from rwmapper.core.models import (
    DiagnosticKind,
    DomainRecord,
    DoorEvent,
    GeneratorSlot,
    ObjectiveItem,
    SessionSnapshot,
    SmallPickup,
    StateChange,
    Zone,
)
from rwmapper.parser.log_tailer import LogTailer


def print_record(record: DomainRecord) -> None:
    """Print a domain record to console."""
    if isinstance(record, Zone):
        print(f"  zone      {record}  ({record.local_name})")
    elif isinstance(record, ObjectiveItem):
        where = f"ZONE_{record.zone_alias}" if record.zone_alias is not None else "?"
        if record.key_name:
            print(f"  key       {record.key_name} in {where} container {record.resource_container_id}")
        elif record.area_name:
            print(f"  item      {record.kind.value} in {where} area {record.area_name}")
        else:
            print(f"  item      {record.count}x {record.kind.value} in {where}")
    elif isinstance(record, GeneratorSlot):
        fallback = " [fallback]" if record.via_fallback else ""
        status = f"resolved ({record.item_name or record.collection_index})" if record.resolved else "unresolved"
        print(f"  generator #{record.index} {status}{fallback}")
    elif isinstance(record, SmallPickup):
        seed = record.seed if record.seed is not None else "?"
        print(f"  pickup    {record.container} seed {seed}")
    elif isinstance(record, DoorEvent):
        when = record.timestamp.isoformat() if record.timestamp else "--:--:--"
        where = f"ZONE_{record.zone_alias}" if record.zone_alias is not None else "level start"
        print(f"  door      {when} after {where}")
    elif isinstance(record, StateChange):
        print(f"\n=== {record.state} ===")


def print_summary(snapshot: SessionSnapshot) -> None:
    """Print a session summary to console."""
    level_name = snapshot.level.display_name or "Unknown level"
    print(f"\n--- {level_name} ---")
    print(f"  Lines: {snapshot.lines_processed} ({snapshot.unrecognized_count} not interpreted)")
    print(f"  Zones: {len(snapshot.zones)}")
    print(f"  Objective items: {len(snapshot.items)}")

    resolved = sum(1 for g in snapshot.generators if g.resolved)
    print(f"  Generators: {len(snapshot.generators)} ({resolved} resolved, "
          f"cursor policy: {snapshot.generator_index_policy.value})")
    print(f"  Doors opened: {len(snapshot.door_events)}")
    if snapshot.small_pickups:
        print(f"  Personnel pickups: {len(snapshot.small_pickups)}")

    if snapshot.unresolved_keys:
        names = ", ".join(k.key_name or "?" for k in snapshot.unresolved_keys)
        print(f"  Unresolved keys: {names}")

    for kind in DiagnosticKind:
        count = len(snapshot.diagnostics_of(kind))
        if count:
            print(f"  {kind.name.lower().replace('_', ' ')}: {count}")


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings.from_args(
        log_path=getattr(args, "file", None),
        poll_interval=getattr(args, "poll_interval", None),
        generator_index_policy=getattr(args, "generator_policy", None),
        fallback_batches=getattr(args, "fallback_batch", None),
        export_path=getattr(args, "output", None),
        log_dir=getattr(args, "log_dir", None),
    )


def _load_settings(args: argparse.Namespace) -> Optional[Settings]:
    try:
        settings = _settings_from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        return None

    errors = settings.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}")
        return None
    return settings


def _make_driver(settings: Settings, verbose: bool = False) -> StreamDriver:
    return StreamDriver(
        generator_index_policy=settings.generator_index_policy,
        fallback_batches=settings.fallback_batches,
        on_record=print_record if verbose else None,
    )


def _parse_file(settings: Settings, verbose: bool) -> SessionSnapshot:
    driver = _make_driver(settings, verbose)
    driver.feed_text(settings.log_path.read_text(encoding="utf-8", errors="replace"))
    return driver.finalize()


def cmd_parse_file(args: argparse.Namespace) -> int:
    """Parse a complete log file and print a summary."""
    settings = _load_settings(args)
    if settings is None:
        return 1

    print(f"Parsing: {settings.log_path}")
    snapshot = _parse_file(settings, verbose=args.verbose)
    print_summary(snapshot)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Parse a complete log file and export the session as JSON."""
    settings = _load_settings(args)
    if settings is None:
        return 1

    snapshot = _parse_file(settings, verbose=False)

    if settings.export_path:
        write_export(snapshot, settings.export_path)
        print(f"Exported session to: {settings.export_path}")
    else:
        print(build_export(snapshot).model_dump_json(indent=2))
    return 0


def cmd_tail(args: argparse.Namespace) -> int:
    """Follow a live log, printing records as they are finalized."""
    settings = _load_settings(args)
    if settings is None:
        return 1

    print(f"Tailing: {settings.log_path}")
    print("Press Ctrl+C to stop.\n")

    driver = _make_driver(settings, verbose=True)
    tailer = LogTailer(settings.log_path)
    if not args.from_beginning:
        # Skip what is already in the file
        for _ in tailer.read_new_lines():
            pass

    def handle_signal(signum, frame):
        driver.stop()

    signal.signal(signal.SIGINT, handle_signal)

    snapshot = driver.tail(tailer, poll_interval=settings.poll_interval)
    print_summary(snapshot)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Tail a log in the background and serve the live session over HTTP."""
    logger = setup_logging(console=True, log_file=Path(args.log_file) if args.log_file else None)

    try:
        import uvicorn
    except ImportError:
        logger.error("Uvicorn is required for the serve command.")
        logger.error("Install with: pip install uvicorn")
        return 1

    from rwmapper.api.app import create_app

    settings = _load_settings(args)
    if settings is None:
        return 1

    logger.info(f"Log file: {settings.log_path}")
    logger.info(f"Generator cursor policy: {settings.generator_index_policy.value}")

    driver = _make_driver(settings)
    tailer = LogTailer(settings.log_path)

    def run_collector():
        try:
            driver.tail(tailer, poll_interval=settings.poll_interval)
        except Exception as e:
            logger.error(f"Collector error: {e}")
            raise

    collector_thread = threading.Thread(target=run_collector, daemon=True)
    collector_thread.start()
    logger.info("Collector started in background")

    app = create_app(driver, log_path=settings.log_path, collector_running=True)

    try:
        logger.info(f"Starting server on {args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    finally:
        logger.info("Shutting down...")
        driver.stop()
        collector_thread.join(timeout=settings.poll_interval * 4)

    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "file",
        type=str,
        nargs="?",
        help="Log file (auto-detects the newest log if not specified)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        help="Directory to search for the newest log",
    )
    parser.add_argument(
        "--generator-policy",
        choices=["continue", "reset"],
        default="continue",
        help="Generator index cursor at fallback sections (default: continue)",
    )
    parser.add_argument(
        "--fallback-batch",
        action="append",
        help="Batch name treated as a generator fallback section (repeatable)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rwmapper",
        description="Rusted Warden Mapper - level layout from the game log",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # parse-file command
    parse_parser = subparsers.add_parser("parse-file", help="Parse a complete log file")
    _add_common_arguments(parse_parser)
    parse_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print every record as it is finalized",
    )

    # export command
    export_parser = subparsers.add_parser("export", help="Export a parsed session as JSON")
    _add_common_arguments(export_parser)
    export_parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file (prints to stdout if not specified)",
    )

    # tail command
    tail_parser = subparsers.add_parser("tail", help="Live tail log file")
    _add_common_arguments(tail_parser)
    tail_parser.add_argument(
        "--from-beginning",
        action="store_true",
        help="Replay lines already in the file before following it",
    )
    tail_parser.add_argument(
        "--poll-interval",
        type=float,
        default=0.5,
        help="Seconds between file checks (default: 0.5)",
    )

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start web server")
    _add_common_arguments(serve_parser)
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)",
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--poll-interval",
        type=float,
        default=0.5,
        help="Seconds between file checks (default: 0.5)",
    )
    serve_parser.add_argument(
        "--log-file",
        type=str,
        help="Also write application logs to this file",
    )

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    if args.command != "serve":
        setup_logging(console=True)

    commands = {
        "parse-file": cmd_parse_file,
        "export": cmd_export,
        "tail": cmd_tail,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func is None:
        print(f"Unknown command: {args.command}")
        return 1

    return cmd_func(args)


if __name__ == "__main__":
    sys.exit(main())
