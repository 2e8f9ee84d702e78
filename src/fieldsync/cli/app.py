"""
CLI Application - Entry point for the fieldsync command.

Usage:
    # Show what is waiting to sync
    fieldsync status

    # Record attendance offline and sync it
    fieldsync attendance C-1001 --name "Ada Lovelace"
    fieldsync sync

    # Keep syncing in the foreground until Ctrl-C
    fieldsync run

Environment Variables:
    FIELDSYNC_API_URL: Remote authority base URL
    FIELDSYNC_API_TOKEN: Bearer token
    FIELDSYNC_DATA_DIR: Where the queue and history are kept (default ~/.fieldsync)
"""

import argparse
import json
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from ..adapters.config.environment import EnvironmentConfigProvider
from ..application.service import SyncService
from ..core.exceptions import FieldSyncError
from ..core.ports.config_provider import AppConfig
from .exit_codes import ExitCode
from .output import Console


ServiceFactory = Callable[[AppConfig], SyncService]


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fieldsync",
        description="Offline-first sync of attendance and verification records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        help="Path to .env file (default: ./.env)"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        help="Directory for the queue, history and candidate files"
    )

    parser.add_argument(
        "--api-url",
        type=str,
        help="Remote API URL (or set FIELDSYNC_API_URL env var)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--max-retries",
        type=int,
        help="Attempts per operation beyond the first (default: 3)"
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("status", help="Show sync status")
    subparsers.add_parser("queue", help="List queued operations")

    history = subparsers.add_parser("history", help="Show recent syncs")
    history.add_argument(
        "--limit", "-n",
        type=int,
        default=20,
        help="Number of entries to show (default: 20)"
    )

    subparsers.add_parser("sync", help="Drain the queue once")

    enqueue = subparsers.add_parser("enqueue", help="Queue an arbitrary operation")
    enqueue.add_argument("--kind", required=True, help="Operation kind tag")
    enqueue.add_argument("--endpoint", required=True, help="Endpoint path or URL")
    enqueue.add_argument("--method", default="POST", help="HTTP method (default: POST)")
    enqueue.add_argument("--payload", default="{}", help="JSON object body")

    attendance = subparsers.add_parser("attendance", help="Record a candidate's attendance")
    attendance.add_argument("candidate_id", help="Candidate identifier")
    attendance.add_argument("--name", default="", help="Candidate name")
    attendance.add_argument(
        "--absent",
        action="store_true",
        help="Mark the candidate absent instead of present"
    )

    clear = subparsers.add_parser("clear", help="Discard every queued operation")
    clear.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    run_cmd = subparsers.add_parser("run", help="Keep syncing until interrupted")
    run_cmd.add_argument(
        "--interval",
        type=float,
        help="Seconds between periodic syncs (default: 60)"
    )
    run_cmd.add_argument(
        "--probe-interval",
        type=float,
        default=15.0,
        help="Seconds between connectivity probes (default: 15)"
    )

    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    """
    Build the AppConfig from .env, environment and CLI flags.

    Raises:
        ValueError: listing every configuration problem
    """
    provider = EnvironmentConfigProvider(
        env_file=args.env_file,
        cli_overrides={
            "api_url": args.api_url,
            "data_dir": args.data_dir,
            "interval": getattr(args, "interval", None),
            "max_retries": args.max_retries,
            "verbose": args.verbose or None,
        },
    )
    errors = provider.validate()
    if errors:
        raise ValueError("; ".join(errors))
    return provider.load()


def run(args: argparse.Namespace, service_factory: ServiceFactory = SyncService.from_config) -> int:
    """
    Run a parsed command.

    Args:
        args: Parsed arguments
        service_factory: Builds the SyncService from configuration

    Returns:
        Exit code
    """
    logger = logging.getLogger("main")
    console = Console(color=not args.no_color, verbose=args.verbose)

    try:
        config = load_config(args)
        service = service_factory(config)
    except (ValueError, FieldSyncError) as e:
        console.error(f"Configuration error: {e}")
        return ExitCode.CONFIG_ERROR

    handler = COMMANDS[args.command]
    try:
        service.init()
        return handler(service, console, args)
    except FieldSyncError as e:
        logger.error(str(e))
        console.error(str(e))
        return ExitCode.ERROR
    finally:
        service.shutdown()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        return int(run(args))
    except KeyboardInterrupt:
        print()
        return ExitCode.INTERRUPTED


# =============================================================================
# Commands
# =============================================================================

def cmd_status(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    console.sync_status(service.get_sync_status())
    return ExitCode.SUCCESS


def cmd_queue(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    console.queued_operations(service.get_queued_operations())
    return ExitCode.SUCCESS


def cmd_history(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    console.sync_history(service.get_sync_history(limit=args.limit))
    return ExitCode.SUCCESS


def cmd_sync(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    """Manual drain. Exit code tells whether anything was dropped."""
    console.header("fieldsync - Sync Now")
    result = service.sync_now()
    console.drain_result(result)
    return ExitCode.DROPPED if result.failed else ExitCode.SUCCESS


def cmd_enqueue(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    try:
        payload = json.loads(args.payload)
    except json.JSONDecodeError as e:
        console.error(f"Invalid --payload JSON: {e}")
        return ExitCode.ERROR
    if not isinstance(payload, dict):
        console.error("--payload must be a JSON object")
        return ExitCode.ERROR

    op_id = service.enqueue(args.kind, args.endpoint, args.method, payload)
    console.success(f"Queued {args.kind} operation {op_id}")
    console.detail(f"{service.get_queue_size()} operation(s) in queue")
    return ExitCode.SUCCESS


def cmd_attendance(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    present = not args.absent
    op_id = service.record_attendance(args.candidate_id, name=args.name, present=present)
    state = "present" if present else "absent"
    console.success(f"Recorded {args.candidate_id} as {state}")
    console.detail(f"Operation {op_id} queued")
    return ExitCode.SUCCESS


def cmd_clear(service: SyncService, console: Console, args: argparse.Namespace) -> int:
    size = service.get_queue_size()
    if not size:
        console.info("Queue is already empty")
        return ExitCode.SUCCESS
    if not args.yes and not console.confirm(f"Discard {size} queued operation(s)?"):
        console.info("Aborted")
        return ExitCode.SUCCESS

    removed = service.clear_queue()
    console.success(f"Discarded {removed} operation(s)")
    return ExitCode.SUCCESS


def cmd_run(
    service: SyncService,
    console: Console,
    args: argparse.Namespace,
    stop: Optional[threading.Event] = None,
) -> int:
    """Foreground loop: the timer drains, this loop probes connectivity."""
    stop = stop or threading.Event()
    console.header("fieldsync - Running")
    console.info(f"Syncing every {service.timer.interval:g}s, press Ctrl-C to stop")

    try:
        while not stop.is_set():
            service.check_connectivity()
            stop.wait(args.probe_interval)
    except KeyboardInterrupt:
        console.print()
        console.info("Stopping...")
    return ExitCode.SUCCESS


COMMANDS = {
    "status": cmd_status,
    "queue": cmd_queue,
    "history": cmd_history,
    "sync": cmd_sync,
    "enqueue": cmd_enqueue,
    "attendance": cmd_attendance,
    "clear": cmd_clear,
    "run": cmd_run,
}
