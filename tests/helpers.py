"""Helpers shared by the test modules."""

import os
from pathlib import Path

BASE_TIME = 1700000000.0


def make_file(path: Path, content: str, mtime: float | None = None) -> Path:
    """Write a file (creating parents) and optionally pin its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
