"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from appvault.config import Config
    from appvault.core.backup import BackupManager
    from appvault.core.progress import RestoreProgress
    from appvault.core.restore import RestoreManager
    from appvault.data.preferences import Preferences
    from appvault.data.storage import Storage


@dataclass
class AppContext:
    """
    Central service container.

    Presentation code receives this at construction time; the backup
    engine itself only sees the narrow store interfaces.
    """

    config: Config
    storage: Storage
    preferences: Preferences

    # Backup services
    backup_manager: BackupManager
    restore_manager: RestoreManager
    progress: RestoreProgress
