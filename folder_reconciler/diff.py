"""Plain diff of two trees by relative path."""

import logging
from pathlib import Path
from typing import Optional

from .models import DiffResult
from .reconcile import check_roots
from .scanner import iter_relative_files

logger = logging.getLogger(__name__)


def diff_trees(
    source: Path,
    destination: Path,
    exclude: Optional[str] = None
) -> DiffResult:
    """List files present under only one of the two roots."""
    check_roots(source, destination)

    source_files = set(iter_relative_files(source, exclude))
    destination_files = set(iter_relative_files(destination, exclude))

    result = DiffResult(
        only_in_source=sorted(source_files - destination_files),
        only_in_destination=sorted(destination_files - source_files),
    )

    logger.info("Diff: %s <-> %s", source, destination)
    for path in result.only_in_source:
        logger.info("  only in source:      %s", path)
    for path in result.only_in_destination:
        logger.info("  only in destination: %s", path)
    logger.info(
        "Diff finished: %d only in source, %d only in destination",
        len(result.only_in_source), len(result.only_in_destination),
    )
    return result
