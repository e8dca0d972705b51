"""Merge-error scan: find destination files a mirror run left stale."""

import logging
import os
import shutil
import stat
import threading
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .errors import PreconditionError
from .logs import LOGGER_NAME
from .models import Config, ConflictRecord, EntryStatus, FileInfo, ScanError, ScanSummary
from .scanner import get_file_info, iter_relative_files, long_path, stat_file

logger = logging.getLogger(__name__)


def format_timestamp(timestamp: float) -> str:
    """Format a Unix timestamp as a human-readable string."""
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def format_size(size: int) -> str:
    """Format file size in human-readable form."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def check_roots(source: Path, destination: Path) -> None:
    """Raise PreconditionError (and log it) unless both roots are directories."""
    for label, root in (("Source", source), ("Destination", destination)):
        if not root.is_dir():
            message = f"{label} folder does not exist or is not a directory: {root}"
            logger.error(message)
            raise PreconditionError(message)


def ensure_directory(path: Path, label: str) -> None:
    try:
        os.makedirs(long_path(path), exist_ok=True)
    except OSError as e:
        message = f"Cannot create {label} directory {path}: {e}"
        logger.error(message)
        raise PreconditionError(message) from e


def copy_file(src: Path, dst: Path) -> None:
    """Copy a file, creating parent directories if needed."""
    dst_long = long_path(dst)
    os.makedirs(os.path.dirname(dst_long), exist_ok=True)
    shutil.copy2(long_path(src), dst_long)


def looks_stale(
    source_size: int,
    source_mtime: float,
    destination_size: int,
    destination_mtime: float
) -> bool:
    """
    True when the destination is at least as new as the source yet smaller.

    That is the footprint of a mirror that skipped a file because the
    destination looked newer. Older-and-smaller destinations are deliberately
    not flagged.
    """
    return destination_mtime >= source_mtime and destination_size < source_size


def quarantine_paths(quarantine: Path, relative_path: str) -> tuple[Path, Path]:
    """Return the (``_original``, ``_merge``) quarantine paths for an entry."""
    rel = PurePosixPath(relative_path)
    parent = quarantine.joinpath(*rel.parent.parts)
    original = parent / f"{rel.stem}_original{rel.suffix}"
    merge = parent / f"{rel.stem}_merge{rel.suffix}"
    return original, merge


def classify_entry(
    source: Path,
    destination: Path,
    relative_path: str
) -> tuple[EntryStatus, Optional[tuple[FileInfo, FileInfo]]]:
    """
    Compare one relative entry across the two roots.

    Anything other than a regular file on either side counts as missing.
    Returns the status and, for a conflict, the (source, destination)
    descriptors. OSError from either side propagates to the caller.
    """
    try:
        dst_stat = stat_file(destination, relative_path)
    except (FileNotFoundError, NotADirectoryError):
        return EntryStatus.MISSING, None
    if not stat.S_ISREG(dst_stat.st_mode):
        return EntryStatus.MISSING, None

    src_stat = stat_file(source, relative_path)
    if not stat.S_ISREG(src_stat.st_mode):
        return EntryStatus.MISSING, None

    # A stale destination is always smaller, so the size/time check can rule
    # a pair out before either file is read.
    if not looks_stale(src_stat.st_size, src_stat.st_mtime,
                       dst_stat.st_size, dst_stat.st_mtime):
        return EntryStatus.CLEAN, None

    src_info = get_file_info(source, relative_path)
    dst_info = get_file_info(destination, relative_path)
    if src_info.hash == dst_info.hash:
        return EntryStatus.CLEAN, None
    if not looks_stale(src_info.size, src_info.modified_time,
                       dst_info.size, dst_info.modified_time):
        return EntryStatus.CLEAN, None
    return EntryStatus.CONFLICT, (src_info, dst_info)


def quarantine_conflict(
    quarantine: Path,
    src_info: FileInfo,
    dst_info: FileInfo
) -> ConflictRecord:
    """Copy both sides of a conflict aside, overwriting earlier copies."""
    original, merge = quarantine_paths(quarantine, src_info.relative_path)
    copy_file(Path(dst_info.absolute_path), original)
    copy_file(Path(src_info.absolute_path), merge)

    logger.warning(
        "Merge error: %s (source %s, %s; destination %s, %s) -> %s",
        src_info.relative_path,
        format_size(src_info.size), format_timestamp(src_info.modified_time),
        format_size(dst_info.size), format_timestamp(dst_info.modified_time),
        original.parent,
    )
    return ConflictRecord(
        relative_path=src_info.relative_path,
        source_info=src_info,
        destination_info=dst_info,
        original_copy=str(original),
        merge_copy=str(merge),
    )


def scan_merge_errors(
    config: Config,
    cancel: Optional[threading.Event] = None
) -> ScanSummary:
    """
    Walk the source tree and quarantine every pair where the destination
    looks stale.

    Missing roots abort before any work. Per-entry I/O errors are logged and
    skipped so a long pass survives a changing filesystem. ``cancel`` is
    checked between entries.
    """
    check_roots(config.source, config.destination)
    ensure_directory(config.quarantine, "quarantine")

    logger.info("Scanning for merge errors")
    logger.info("  Source:      %s", config.source)
    logger.info("  Destination: %s", config.destination)
    logger.info("  Quarantine:  %s", config.quarantine)
    if config.exclude:
        logger.info("  Excluding:   %s", config.exclude)

    summary = ScanSummary()
    entries = iter_relative_files(config.source, config.exclude)

    with logging_redirect_tqdm(loggers=[logging.getLogger(LOGGER_NAME)]):
        with tqdm(entries, desc="Scanning", unit="file") as pbar:
            for rel_path in pbar:
                if cancel is not None and cancel.is_set():
                    summary.cancelled = True
                    break
                try:
                    status, pair = classify_entry(
                        config.source, config.destination, rel_path
                    )
                    if status is EntryStatus.MISSING:
                        summary.missing += 1
                        continue
                    summary.compared += 1
                    if status is EntryStatus.CONFLICT:
                        record = quarantine_conflict(config.quarantine, *pair)
                        summary.conflicts.append(record)
                except OSError as e:
                    error = ScanError(rel_path, str(config.source / rel_path), str(e))
                    summary.errors.append(error)
                    logger.warning("Skipped %s: %s", rel_path, e)

    if summary.cancelled:
        logger.warning("Scan cancelled after %d compared files", summary.compared)
    logger.info(
        "Scan finished: %d compared, %d not in destination, %d merge errors, %d skipped on error",
        summary.compared, summary.missing, len(summary.conflicts), len(summary.errors),
    )
    return summary
