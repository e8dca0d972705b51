"""Data models for folder reconciler."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass
class FileInfo:
    """Information about a file including metadata and hash."""
    relative_path: str
    absolute_path: str
    hash: str
    size: int
    modified_time: float


@dataclass
class ConflictRecord:
    """A destination file suspected stale, and where both copies were put."""
    relative_path: str
    source_info: FileInfo
    destination_info: FileInfo
    original_copy: str
    merge_copy: str


@dataclass
class ScanError:
    """Record of an entry that was skipped because of an I/O error."""
    relative_path: str
    absolute_path: str
    error: str


class EntryStatus(Enum):
    """How a single relative entry came out of the reconciliation check."""
    MISSING = "missing"  # no regular file at the destination
    CLEAN = "clean"
    CONFLICT = "conflict"


@dataclass
class ScanSummary:
    """Outcome of one merge-error scan."""
    compared: int = 0
    missing: int = 0
    conflicts: list[ConflictRecord] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class DiffResult:
    """Relative paths present on only one side of a pair of trees."""
    only_in_source: list[str]
    only_in_destination: list[str]

    @property
    def identical(self) -> bool:
        return not self.only_in_source and not self.only_in_destination


@dataclass(frozen=True)
class Config:
    """Roots and options for one session. Replace, don't mutate."""
    source: Path
    destination: Path
    quarantine: Path
    log_dir: Path
    exclude: Optional[str] = None
    dry_run: bool = False

    @staticmethod
    def default_quarantine(destination: Path) -> Path:
        return destination.parent / f"{destination.name}_merge_errors"
