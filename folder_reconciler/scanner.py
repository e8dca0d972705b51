"""Tree enumeration and file hashing."""

import logging
import os
import re
from pathlib import Path
from typing import Iterator, Optional

import xxhash

from .models import FileInfo

logger = logging.getLogger(__name__)

# Any path segment named "Changed", in any case.
DEFAULT_EXCLUDE = r"(^|/)changed(/|$)"


def long_path(path: Path) -> str:
    """Convert path to long path format on Windows to handle paths > 260 chars."""
    path_str = str(path.resolve())
    if os.name == 'nt' and not path_str.startswith('\\\\?\\'):
        return '\\\\?\\' + path_str
    return path_str


def normalize_root(raw: str) -> Path:
    """Turn an operator-typed path into an absolute tree root."""
    cleaned = raw.strip().strip('"\'').strip()
    if not cleaned:
        raise ValueError("Empty path")
    return Path(cleaned).expanduser().absolute()


def compile_exclude(pattern: Optional[str]) -> Optional[re.Pattern]:
    """Compile an exclusion pattern case-insensitively. Empty means none."""
    if not pattern:
        return None
    return re.compile(pattern, re.IGNORECASE)


def iter_relative_files(root: Path, exclude: Optional[str] = None) -> Iterator[str]:
    """
    Lazily yield the POSIX relative path of every regular file under root.

    os.scandir hands back the entry type together with the listing, so no
    per-file stat is needed to tell files from directories. Directories whose
    relative path plus a trailing slash matches ``exclude`` are not entered;
    files whose relative path matches are not yielded.
    """
    pattern = compile_exclude(exclude)
    # (directory, relative prefix) pairs still to list
    pending = [(long_path(root), "")]
    while pending:
        directory, prefix = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning("Cannot list directory %s: %s", directory, e)
            continue

        subdirs = []
        for entry in entries:
            rel_path = prefix + entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError:
                continue

            if is_dir:
                if pattern and pattern.search(rel_path + "/"):
                    continue
                subdirs.append((entry.path, rel_path + "/"))
            elif is_file:
                if pattern and pattern.search(rel_path):
                    continue
                yield rel_path

        # Reversed so subdirectories are popped in name order.
        pending.extend(reversed(subdirs))


def compute_file_hash(file_path: Path, chunk_size: int = 65536) -> str:
    """Compute hash of a file using xxhash (fast hashing algorithm)."""
    hasher = xxhash.xxh64()
    with open(long_path(file_path), 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()


def stat_file(base_path: Path, relative_path: str) -> os.stat_result:
    """Stat a file under base_path without reading it."""
    return os.stat(long_path(base_path / relative_path))


def get_file_info(base_path: Path, relative_path: str) -> FileInfo:
    """Get file information including hash and metadata."""
    abs_path = base_path / relative_path
    stat = os.stat(long_path(abs_path))
    file_hash = compute_file_hash(abs_path)

    return FileInfo(
        relative_path=relative_path,
        absolute_path=str(abs_path),
        hash=file_hash,
        size=stat.st_size,
        modified_time=stat.st_mtime
    )
