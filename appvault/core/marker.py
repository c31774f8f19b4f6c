"""Archive marker — sentinel file proving an archive was produced by this engine."""

from __future__ import annotations

import re
import time
from pathlib import Path

from loguru import logger

MARKER_FILE = "PORTAL_BACKUP_MARKER.txt"
MARKER_PREFIX = "PORTAL_BACKUP_v1.0"

# Names and tokens written by earlier product releases are still accepted.
ACCEPTED_MARKER_FILES = (
    "PORTAL_BACKUP_MARKER.txt",
    "FEATHER_BACKUP_MARKER.txt",
    "PORTAL_BACKUP_CHECKER.txt",
)
ACCEPTED_TOKENS = ("PORTAL_BACKUP", "FEATHER_BACKUP")

SETTINGS_FILE = "settings.plist"

_TIMESTAMP_RE = re.compile(r"_(\d+(?:\.\d+)?)\s*$")


def write_marker(directory: Path, now: float | None = None) -> Path:
    """Write the marker file with a creation timestamp."""
    stamp = time.time() if now is None else now
    path = directory / MARKER_FILE
    path.write_text(f"{MARKER_PREFIX}_{stamp}", encoding="utf-8")
    return path


def _read_marker(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Unreadable marker {path.name}: {e}")
        return None


def find_marker(directory: Path) -> Path | None:
    """Return the first recognized marker file containing a recognized token."""
    for name in ACCEPTED_MARKER_FILES:
        path = directory / name
        if not path.is_file():
            continue
        content = _read_marker(path)
        if content and any(token in content for token in ACCEPTED_TOKENS):
            return path
    return None


def has_valid_marker(directory: Path) -> bool:
    return find_marker(directory) is not None


def has_settings(directory: Path) -> bool:
    return (directory / SETTINGS_FILE).is_file()


def marker_timestamp(directory: Path) -> float | None:
    """Creation time recorded in the marker. Diagnostic only."""
    path = find_marker(directory)
    if path is None:
        return None
    match = _TIMESTAMP_RE.search(_read_marker(path) or "")
    return float(match.group(1)) if match else None
