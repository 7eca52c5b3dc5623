# cli.py
# Description: Command line entry point: sync, maintenance actions, bulk import, and effective config.
#
# Imports
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional
#
# 3rd-Party Imports
from loguru import logger
from pydantic import ValidationError
#
# Local Imports
from .app import TEMClient
from .config import dump_settings, load_client_settings, load_settings
from .Logging_Config import setup_logger
from .notifications import Notification
from .tem_api.schemas import BulkImportRequest
from .Sync.maintenance import MaintenanceAction
from .Sync.sync_session import SyncState
#
########################################################################################################################
#
# Functions:

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tem-client",
        description="Text Expansion Manager client: sync shortcuts and run backend maintenance.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--log-level", default=None, help="Override [logging] log_level")
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sync", help="Run a full snapshot sync and print per-language counts")

    maintenance_parser = subparsers.add_parser("maintenance", help="Run a backend maintenance action")
    maintenance_parser.add_argument("action", choices=[action.value for action in MaintenanceAction])

    import_parser = subparsers.add_parser("import", help="Bulk import shortcuts from a text file")
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument("--mode", choices=["merge", "replace"], default="merge")
    import_parser.add_argument("--application", default=None, help="Default application for imported lines")

    subparsers.add_parser("config", help="Print the effective configuration as TOML")
    return parser.parse_args(argv)


def _print_notification(notification: Notification) -> None:
    print(f"[{notification.severity}] {notification.message}")


async def _run_sync(client: TEMClient) -> int:
    session = await client.sync()
    if session.state == SyncState.ERRORED:
        # One resume attempt from the stored cursor before giving up
        logger.info("Sync errored; retrying once from the stored cursor")
        session = await client.retry_sync()
    if session.state != SyncState.COMPLETED:
        print(session.status, file=sys.stderr)
        return 1
    counts = client.language_counts()
    print(f"{counts['total']} records "
          f"(english {counts['english']}, spanish {counts['spanish']}, all {counts['all']})")
    return 0


async def _run_command(args: argparse.Namespace) -> int:
    settings = load_client_settings(args.config)
    async with TEMClient.from_settings(settings) as client:
        client.notifier.listener = _print_notification
        if args.command == "sync":
            return await _run_sync(client)
        if args.command == "maintenance":
            result = await client.run_maintenance(MaintenanceAction(args.action))
            return 0 if result is not None and client.session.state != SyncState.ERRORED else 1
        if args.command == "import":
            try:
                request = BulkImportRequest(
                    mode=args.mode,
                    text=args.file.read_text(encoding="utf-8"),
                    default_application=args.application,
                )
            except (OSError, ValidationError) as e:
                print(f"Cannot import {args.file}: {e}", file=sys.stderr)
                return 2
            response = await client.bulk_import(request)
            return 0 if response is not None else 1
    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.command == "config":
        print(dump_settings(load_settings(args.config)))
        return 0

    settings = load_client_settings(args.config)
    setup_logger(
        log_level=args.log_level or settings.logging.log_level,
        log_file=None if args.no_log_file else settings.logging.log_file,
    )
    try:
        return asyncio.run(_run_command(args))
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())

#
# End of cli.py
########################################################################################################################
