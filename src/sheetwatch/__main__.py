"""CLI entry point for sheetwatch.

Usage:
    python -m sheetwatch run [--config PATH]
    python -m sheetwatch validate [--config PATH]
    python -m sheetwatch diff <current.json> <previous.json> [--config PATH] [--sheet NAME]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from sheetwatch.checker import SheetChecker
from sheetwatch.config import WatchConfig, get_settings, load_config
from sheetwatch.credentials import CredentialsProvider
from sheetwatch.diff import compute_diff, resolve_regions
from sheetwatch.exceptions import SheetwatchError
from sheetwatch.logging import configure_logging
from sheetwatch.notifier import ChangeNotifier
from sheetwatch.transport import GoogleSheetsTransport

EXIT_INTERRUPTED = 130


def _load(args: argparse.Namespace) -> WatchConfig:
    path = args.config or get_settings().config_path
    return load_config(path)


async def _run_checker(config: WatchConfig, timeout: int) -> None:
    provider = CredentialsProvider(config.credentials_file)
    token = await asyncio.to_thread(provider.get_token)

    transport = GoogleSheetsTransport(access_token=token.access_token, timeout=timeout)
    notifier = ChangeNotifier(config.notify_url, timeout=timeout)
    try:
        checker = SheetChecker(config, transport, notifier)
        await checker.run()
    finally:
        await notifier.close()
        await transport.close()


async def _run_with_signals(config: WatchConfig, timeout: int) -> int:
    """Run the checker, cancelling it on SIGINT/SIGTERM."""
    task = asyncio.create_task(_run_checker(config, timeout))
    loop = asyncio.get_running_loop()

    def on_signal(signum: int) -> None:
        logger.warning(f"Received signal: {signal.Signals(signum).name}")
        task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, on_signal, signum)
    try:
        await task
    except asyncio.CancelledError:
        logger.warning("Sheet check cancelled")
        return EXIT_INTERRUPTED
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Compare, notify and sync once."""
    settings = get_settings()
    configure_logging(is_production=settings.is_production, log_level=settings.log_level)

    try:
        config = _load(args)
    except SheetwatchError as e:
        logger.error(f"Failed to initialize application: {e}")
        return 1

    try:
        return asyncio.run(_run_with_signals(config, settings.request_timeout))
    except SheetwatchError as e:
        logger.error(f"Application error: {e}")
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Check that every configured region parses."""
    try:
        config = _load(args)
    except SheetwatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Reference errors do not depend on the sheet; "-" stands in for it.
    resolution = resolve_regions("-", config.regions)
    for skipped in resolution.skipped:
        print(f"region #{skipped.index}: {skipped.error}", file=sys.stderr)

    print(
        f"{len(resolution.regions)} valid region(s), "
        f"{len(resolution.skipped)} malformed"
    )
    return 1 if resolution.skipped else 0


def _read_grid(path: Path) -> list[list[Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise ValueError(f"{path} must contain a JSON array of rows")
    return data


def cmd_diff(args: argparse.Namespace) -> int:
    """Diff two local grid files and print the change payload."""
    try:
        config = _load(args)
        current = _read_grid(Path(args.current))
        previous = _read_grid(Path(args.previous))
    except (SheetwatchError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    changes = compute_diff(current, previous, args.sheet, config.regions)
    print(json.dumps([c.to_payload() for c in changes], indent=2, ensure_ascii=False))
    print(f"\n# {len(changes)} change(s)", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetwatch",
        description="Detect value changes between two spreadsheets and mirror the source",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_help = "Path to the JSON watch configuration (default: $CONFIG_PATH)"

    run_parser = subparsers.add_parser("run", help="Compare, notify and sync once")
    run_parser.add_argument("--config", help=config_help)
    run_parser.set_defaults(func=cmd_run)

    validate_parser = subparsers.add_parser(
        "validate", help="Check the configured region references"
    )
    validate_parser.add_argument("--config", help=config_help)
    validate_parser.set_defaults(func=cmd_validate)

    diff_parser = subparsers.add_parser(
        "diff", help="Diff two local JSON grid files (no network)"
    )
    diff_parser.add_argument("current", help="JSON file with the current grid")
    diff_parser.add_argument("previous", help="JSON file with the previous grid")
    diff_parser.add_argument("--config", help=config_help)
    diff_parser.add_argument("--sheet", default="Sheet1", help="Sheet name for records")
    diff_parser.set_defaults(func=cmd_diff)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
