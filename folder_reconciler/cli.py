"""Command-line interface for folder reconciler."""

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .diff import diff_trees
from .errors import PreconditionError, ReconcilerError
from .logs import setup_logger
from .mirror import run_mirror
from .models import Config, ScanSummary
from .reconcile import scan_merge_errors
from .scanner import DEFAULT_EXCLUDE, normalize_root

logger = logging.getLogger(__name__)

COMMANDS = ("merge", "diff", "backup", "scan")

MENU = {
    "1": "merge",
    "2": "diff",
    "3": "backup",
    "4": "scan",
}


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Merge, diff, back up and check for merge errors between two folders.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Without a command an interactive menu is shown.

Examples:
  %(prog)s --source D:/work --destination E:/mirror
  %(prog)s --source D:/work --destination E:/mirror --dry-run backup
  %(prog)s -s D:/work -d E:/mirror -q E:/merge_errors scan
        """
    )

    parser.add_argument("command", nargs="?", choices=COMMANDS,
                        help="Run one action and exit")

    parser.add_argument("--source", "-s", help="Source folder")
    parser.add_argument("--destination", "-d", help="Destination folder")
    parser.add_argument(
        "--quarantine", "-q",
        help="Folder receiving copies of merge errors "
             "(default: <destination>_merge_errors next to the destination)"
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Folder for the run log (default: logs)"
    )

    exclude = parser.add_mutually_exclusive_group()
    exclude.add_argument(
        "--exclude",
        default=DEFAULT_EXCLUDE,
        help="Regex of relative paths the merge-error scan skips, case-insensitive "
             "(default: any 'Changed' path segment)"
    )
    exclude.add_argument(
        "--no-exclude",
        action="store_true",
        help="Scan every path"
    )

    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="List what merge and backup would do without copying"
    )

    return parser.parse_args()


def prompt_root(label: str, must_exist: bool, current: Optional[Path] = None) -> Path:
    """Prompt until the operator enters a usable folder."""
    while True:
        hint = f" [{current}]" if current else ""
        raw = input(f"Enter {label} folder{hint}: ")
        if not raw.strip() and current:
            return current
        try:
            path = normalize_root(raw)
        except ValueError:
            print("Please enter a path.")
            continue
        if must_exist and not path.is_dir():
            print(f"Not a directory: {path}")
            continue
        return path


def build_config(args: argparse.Namespace) -> Config:
    """Collect roots from flags or prompts into a Config."""
    if args.source:
        source = normalize_root(args.source)
        if not source.is_dir():
            message = f"Source folder does not exist: {source}"
            logger.error(message)
            print(f"Error: {message}")
            sys.exit(1)
    else:
        source = prompt_root("source", must_exist=True)

    if args.destination:
        destination = normalize_root(args.destination)
    else:
        destination = prompt_root("destination", must_exist=False)

    if args.quarantine:
        quarantine = normalize_root(args.quarantine)
    else:
        quarantine = Config.default_quarantine(destination)

    return Config(
        source=source,
        destination=destination,
        quarantine=quarantine,
        log_dir=args.log_dir.absolute(),
        exclude=None if args.no_exclude else args.exclude,
        dry_run=args.dry_run,
    )


def confirm_backup(config: Config) -> bool:
    """Backup deletes destination-only files, so ask first."""
    if config.dry_run:
        return True
    print(f"Warning: files that exist only in {config.destination} will be deleted.")
    response = input("Continue anyway? (y/N): ").strip().lower()
    return response == 'y'


def scan_with_interrupt(config: Config) -> ScanSummary:
    """Run the merge-error scan; Ctrl+C stops it after the current file."""
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        return scan_merge_errors(config, cancel)
    finally:
        signal.signal(signal.SIGINT, previous)


def print_scan_summary(summary: ScanSummary, config: Config) -> None:
    print("\n--- Scan Summary ---")
    if summary.cancelled:
        print("Scan was cancelled before the end of the source tree.")
    print(f"Files compared: {summary.compared}")
    print(f"Not in destination: {summary.missing}")
    print(f"Merge errors: {len(summary.conflicts)}")
    for record in summary.conflicts[:10]:  # Show first 10
        print(f"  {record.relative_path}")
    if len(summary.conflicts) > 10:
        print(f"  ... and {len(summary.conflicts) - 10} more")
    if summary.conflicts:
        print(f"Copies written to: {config.quarantine}")
    if summary.errors:
        print(f"Skipped on error: {len(summary.errors)}")
    print("-" * 20)


def run_action(config: Config, action: str) -> None:
    """Run one of COMMANDS against config."""
    if action == "merge":
        run_mirror(config, purge_extraneous=False)
    elif action == "backup":
        if not confirm_backup(config):
            print("Aborted.")
            return
        run_mirror(config, purge_extraneous=True)
    elif action == "diff":
        result = diff_trees(config.source, config.destination, config.exclude)
        if result.identical:
            print("\nBoth folders contain the same files.")
        else:
            print(f"\nOnly in source: {len(result.only_in_source)}")
            print(f"Only in destination: {len(result.only_in_destination)}")
    elif action == "scan":
        summary = scan_with_interrupt(config)
        print_scan_summary(summary, config)
    else:
        raise ValueError(f"Unknown action: {action}")


def print_menu(config: Config) -> None:
    print("\n" + "=" * 60)
    print("FOLDER RECONCILER")
    print("=" * 60)
    print(f"Source:      {config.source}")
    print(f"Destination: {config.destination}")
    print(f"Quarantine:  {config.quarantine}")
    print(f"Dry run:     {'on' if config.dry_run else 'off'}")
    print("\nOptions:")
    print("  1: Merge source into destination")
    print("  2: Diff source and destination")
    print("  3: Backup (mirror and purge extra destination files)")
    print("  4: Scan for merge errors")
    print("  5: Change source folder")
    print("  6: Change destination folder")
    print("  7: Toggle dry run")
    print("  q: Quit")


def menu_loop(config: Config, auto_quarantine: bool = True) -> None:
    """Interactive loop until the operator quits."""
    while True:
        print_menu(config)
        try:
            choice = input("\nEnter your choice: ").strip().lower()
        except EOFError:
            break

        if choice in ("q", "quit", "exit"):
            break
        elif choice == "5":
            config = replace(config, source=prompt_root("source", True, config.source))
        elif choice == "6":
            destination = prompt_root("destination", False, config.destination)
            config = replace(config, destination=destination)
            if auto_quarantine:
                config = replace(config, quarantine=Config.default_quarantine(destination))
        elif choice == "7":
            config = replace(config, dry_run=not config.dry_run)
        elif choice in MENU:
            try:
                run_action(config, MENU[choice])
            except ReconcilerError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                print("\n\nInterrupted!")
        else:
            print("Invalid choice. Please enter 1-7 or q.")


def main() -> None:
    """Main entry point."""
    args = parse_args()

    # Logging comes first so a bad root is recorded too.
    try:
        setup_logger(args.log_dir.absolute())
    except PreconditionError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        config = build_config(args)
    except (EOFError, KeyboardInterrupt):
        print("\nAborted.")
        sys.exit(1)

    if args.command:
        try:
            run_action(config, args.command)
        except ReconcilerError as e:
            print(f"Error: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            print("\n\nInterrupted!")
            sys.exit(1)
        return

    menu_loop(config, auto_quarantine=args.quarantine is None)
