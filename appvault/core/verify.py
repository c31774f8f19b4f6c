"""Archive validator — check an archive without touching live state."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from appvault.core.errors import BackupError
from appvault.core.marker import has_settings, has_valid_marker, marker_timestamp
from appvault.core.staging import extract_archive, staging_directory


def verify_backup(archive: Path) -> bool:
    """
    True iff the archive holds a recognized marker and a settings snapshot.

    Never raises: unreadable or malformed archives yield ``False``.
    """
    archive = Path(archive)
    try:
        with staging_directory("appvault_verify_") as staging:
            extract_archive(archive, staging)
            marker_ok = has_valid_marker(staging)
            settings_ok = has_settings(staging)
            created = marker_timestamp(staging)
    except (BackupError, OSError) as e:
        logger.warning(f"Backup verification failed for {archive.name}: {e}")
        return False

    logger.debug(
        f"Verified {archive.name}: marker={marker_ok} settings={settings_ok} created={created}"
    )
    return marker_ok and settings_ok
