"""Persistent run log: ``<timestamp> <level> <message>`` records."""

import datetime as dt
import logging
import sys
from pathlib import Path

from .errors import PreconditionError

LOGGER_NAME = "folder_reconciler"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ShortLevelFormatter(logging.Formatter):
    """Render WARNING as WARN so every level is INFO, WARN or ERROR."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        if record.levelno == logging.WARNING:
            record.levelname = "WARN"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def log_file_name(prefix: str = "reconciler") -> str:
    return f"{prefix}_{dt.date.today().isoformat()}.log"


def setup_logger(log_dir: Path, console: bool = True) -> logging.Logger:
    """
    Attach a file handler (and optionally a console handler) to the package
    logger. Calling again replaces the previous handlers, so the log directory
    can change between runs in one process.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PreconditionError(f"Cannot create log directory {log_dir}: {e}") from e
    log_path = log_dir / log_file_name()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    close_logger(logger)

    formatter = ShortLevelFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setFormatter(formatter)
    fh.setLevel(logging.INFO)
    logger.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(logging.INFO)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    logger.info("Logging to: %s", log_path)
    return logger


def close_logger(logger: logging.Logger) -> None:
    """Detach and close every handler on logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
