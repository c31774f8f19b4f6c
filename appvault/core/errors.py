"""Backup/restore error taxonomy.

Only fatal conditions are raised. Per-entity problems are recorded in
``DomainReport`` outcomes and never escape as exceptions.
"""

from __future__ import annotations

from typing import Literal

from appvault.i18n import t


class BackupError(Exception):
    """Base class for fatal backup/restore failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BackupIOError(BackupError):
    """Staging, compression, extraction or serialization failed."""


class InvalidArchiveError(BackupError):
    """The archive lacks a recognized marker or the settings snapshot."""


def user_message(exc: BaseException, operation: Literal["backup", "restore"] = "restore") -> str:
    """Map an error to the text shown to the user."""
    if isinstance(exc, InvalidArchiveError):
        return t("backup.err_invalid")
    message = exc.message if isinstance(exc, BackupError) else str(exc)
    if operation == "backup":
        return t("backup.err_prepare", message=message)
    return t("backup.err_restore", message=message)
