"""Loguru sinks for the backup engine."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_FILE = "appvault.log"

_CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {thread.name} | {name}:{line} | {message}"


def setup_logger(log_dir: Path | None = None, level: str = "INFO") -> Path | None:
    """
    Replace loguru's default handler with a console sink at ``level``.

    With ``log_dir`` a rotating DEBUG file sink is added as well. Returns
    the log file path, if any.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=True)

    if log_dir is None:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE
    logger.add(
        str(log_path),
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="5 MB",
        retention="7 days",
        encoding="utf-8",
        enqueue=True,
    )
    return log_path
