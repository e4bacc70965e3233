"""File logging setup.

The terminal belongs to the table view while the app runs, so log records
go only to a rotating file under the user log directory.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from platformdirs import user_log_dir

LOG_FILENAME = "tabiew.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
MAX_LOG_BYTES = 1_000_000
BACKUP_COUNT = 3


def default_log_file() -> Path:
    return Path(user_log_dir("tabiew", appauthor=False)) / LOG_FILENAME


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> Path:
    """Route ``tabiew`` log records to a rotating file and return its path.

    Safe to call more than once: previously installed handlers are replaced.
    """
    target = log_file if log_file is not None else default_log_file()
    target.parent.mkdir(parents=True, exist_ok=True)

    resolved = getattr(logging, str(level).upper().strip(), logging.WARNING)
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    handler = RotatingFileHandler(
        filename=str(target),
        maxBytes=MAX_LOG_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger("tabiew")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    logger.info("logging enabled (file=%s, level=%s)", target, logging.getLevelName(resolved))
    return target


__all__ = ["default_log_file", "setup_logging"]
