"""Shared test fixtures."""

import logging
import tempfile
from dataclasses import replace
from pathlib import Path

import pytest

from folder_reconciler.logs import LOGGER_NAME, close_logger
from folder_reconciler.models import Config, FileInfo, ConflictRecord
from folder_reconciler.scanner import DEFAULT_EXCLUDE

from .helpers import BASE_TIME, make_file


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Leave the package logger without handlers between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    close_logger(logger)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
        # Log files must be closed before the folder can go on Windows.
        close_logger(logging.getLogger(LOGGER_NAME))


@pytest.fixture
def sample_trees(temp_dir):
    """
    Source and destination trees covering each reconciliation case.

    stale.txt         destination newer and smaller -> merge error
    nested/deep.bin   destination same time and smaller -> merge error
    identical.txt     same bytes
    updated.txt       destination newer and larger
    older.txt         destination older and larger
    older_small.txt   destination older and smaller
    only_source.txt   missing at destination
    is_dir.txt        a directory at destination
    Changed/skip.txt  excluded path, otherwise a merge error
    """
    source = temp_dir / "source"
    destination = temp_dir / "destination"
    source.mkdir()
    destination.mkdir()

    make_file(source / "stale.txt", "x" * 100, BASE_TIME + 1)
    make_file(destination / "stale.txt", "y" * 50, BASE_TIME + 2)

    make_file(source / "nested" / "deep.bin", "full content", BASE_TIME)
    make_file(destination / "nested" / "deep.bin", "full", BASE_TIME)

    make_file(source / "identical.txt", "same content", BASE_TIME)
    make_file(destination / "identical.txt", "same content", BASE_TIME + 5)

    make_file(source / "updated.txt", "short", BASE_TIME)
    make_file(destination / "updated.txt", "much longer edit", BASE_TIME + 5)

    make_file(source / "older.txt", "short", BASE_TIME + 5)
    make_file(destination / "older.txt", "much longer text", BASE_TIME)

    make_file(source / "older_small.txt", "long source text", BASE_TIME + 5)
    make_file(destination / "older_small.txt", "tiny", BASE_TIME)

    make_file(source / "only_source.txt", "only here", BASE_TIME)

    make_file(source / "is_dir.txt", "a file in source", BASE_TIME)
    (destination / "is_dir.txt").mkdir()

    make_file(source / "Changed" / "skip.txt", "x" * 100, BASE_TIME)
    make_file(destination / "Changed" / "skip.txt", "y", BASE_TIME + 2)

    return source, destination


@pytest.fixture
def config(sample_trees, temp_dir):
    """Config pointing at sample_trees with the default exclusion."""
    source, destination = sample_trees
    return Config(
        source=source,
        destination=destination,
        quarantine=temp_dir / "quarantine",
        log_dir=temp_dir / "logs",
        exclude=DEFAULT_EXCLUDE,
    )


@pytest.fixture
def sample_file_info():
    """Create a sample FileInfo for testing."""
    return FileInfo(
        relative_path="test/file.txt",
        absolute_path="/absolute/test/file.txt",
        hash="abc123def456",
        size=1024,
        modified_time=1700000000.0
    )


@pytest.fixture
def sample_conflict_record(sample_file_info):
    """Create a sample ConflictRecord for testing."""
    return ConflictRecord(
        relative_path="test/file.txt",
        source_info=sample_file_info,
        destination_info=replace(sample_file_info, size=10),
        original_copy="/quarantine/test/file_original.txt",
        merge_copy="/quarantine/test/file_merge.txt",
    )
