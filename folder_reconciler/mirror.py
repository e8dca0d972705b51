"""Bulk mirroring through robocopy (Windows) or rsync (everything else)."""

import logging
import platform
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from .errors import MirrorError, PreconditionError
from .models import Config
from .reconcile import ensure_directory

logger = logging.getLogger(__name__)


def build_mirror_command(
    source: Path,
    destination: Path,
    purge_extraneous: bool,
    dry_run: bool,
    system: Optional[str] = None
) -> list[str]:
    """
    Build the copy command.

    Files are never overwritten when the destination copy is newer.
    Attributes are preserved and failed files are not retried.

    rsync --update only skips a destination file that is strictly newer.
    With equal modification times the file is still transferred when the
    sizes differ, so an equal-time truncated copy gets repaired by merge
    instead of being left for the merge-error scan.
    """
    system = system or platform.system()
    if system == "Windows":
        # /E subdirectories incl. empty, /XO skip when destination is newer,
        # /R:0 /W:0 no retries, /NP no per-file percentages
        cmd = ["robocopy", str(source), str(destination),
               "/E", "/XO", "/COPYALL", "/R:0", "/W:0", "/NP"]
        if purge_extraneous:
            cmd.append("/PURGE")
        if dry_run:
            cmd.append("/L")
    else:
        # -a archive mode, --update skip when destination is strictly newer
        cmd = ["rsync", "-a", "--update", "-v", f"{source}/", str(destination)]
        if purge_extraneous:
            cmd.append("--delete")
        if dry_run:
            cmd.append("--dry-run")
    return cmd


def is_failure(returncode: int, system: Optional[str] = None) -> bool:
    """Robocopy reports success with codes below 8; rsync only with 0."""
    system = system or platform.system()
    if system == "Windows":
        return returncode >= 8
    return returncode != 0


def mirror(
    source: Path,
    destination: Path,
    purge_extraneous: bool,
    dry_run: bool
) -> Iterator[str]:
    """
    Run the copy tool and yield its output line by line.

    MirrorError is raised once the output is exhausted if the tool failed,
    or straight away if it cannot be started.
    """
    system = platform.system()
    cmd = build_mirror_command(source, destination, purge_extraneous, dry_run, system)

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding='utf-8',
            errors='replace'
        )
    except FileNotFoundError as e:
        raise MirrorError(f"{cmd[0]} is not installed or not on PATH") from e

    with process:
        for line in process.stdout:
            line = line.rstrip("\r\n")
            if line.strip():
                yield line
        returncode = process.wait()

    if is_failure(returncode, system):
        raise MirrorError(f"{cmd[0]} exited with code {returncode}", returncode)


def run_mirror(config: Config, purge_extraneous: bool) -> int:
    """
    Mirror config.source onto config.destination, logging every output line.

    Returns the tool's line count. Merge passes ``purge_extraneous=False``,
    backup passes True.
    """
    action = "Backup" if purge_extraneous else "Merge"
    if not config.source.is_dir():
        message = f"Source folder does not exist or is not a directory: {config.source}"
        logger.error(message)
        raise PreconditionError(message)
    if not config.dry_run:
        ensure_directory(config.destination, "destination")

    logger.info("%s%s: %s -> %s", action, " (dry run)" if config.dry_run else "",
                config.source, config.destination)

    lines = 0
    try:
        for line in mirror(config.source, config.destination,
                           purge_extraneous, config.dry_run):
            logger.info("  %s", line)
            lines += 1
    except MirrorError as e:
        logger.error("%s failed: %s", action, e)
        raise

    logger.info("%s complete", action)
    return lines
