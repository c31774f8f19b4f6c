"""Application entry point — wires services and runs a headless backup command."""

from __future__ import annotations

import argparse
import sys
from dataclasses import fields
from pathlib import Path

from loguru import logger

from appvault.config import Config, get_config
from appvault.context import AppContext
from appvault.core.backup import BackupManager
from appvault.core.errors import BackupError, user_message
from appvault.core.progress import RestoreProgress, RestoreStage
from appvault.core.registry import DomainSet
from appvault.core.restore import RestoreManager
from appvault.data.preferences import Preferences
from appvault.data.storage import Storage
from appvault.i18n import set_language, t
from appvault.logger import setup_logger
from appvault.models.options import BackupOptions


def create_context(config: Config | None = None) -> AppContext:
    """Wire all services and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.data_dir / "logs", level=config.log_level)

    # Live stores
    storage = Storage(config.documents_dir)
    preferences = Preferences(config.data_dir / "preferences.plist")

    # Backup services
    domains = DomainSet.from_storage(storage, preferences)
    progress = RestoreProgress()
    backup_manager = BackupManager(config, domains)
    restore_manager = RestoreManager(config, domains, progress)

    return AppContext(
        config=config,
        storage=storage,
        preferences=preferences,
        backup_manager=backup_manager,
        restore_manager=restore_manager,
        progress=progress,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="appvault", description="Back up and restore application state.")
    parser.add_argument("--data-dir", type=Path, help="Configuration/data directory")
    sub = parser.add_subparsers(dest="command", required=True)

    backup = sub.add_parser("backup", help="Create a full backup archive")
    backup.add_argument("-o", "--output", type=Path, help="Directory for the archive")
    for option in fields(BackupOptions):
        flag = option.name.removeprefix("include_").replace("_", "-")
        backup.add_argument(f"--no-{flag}", dest=option.name, action="store_false", default=None)

    verify = sub.add_parser("verify", help="Check that an archive can be restored")
    verify.add_argument("archive", type=Path)

    restore = sub.add_parser("restore", help="Restore an archive into the live stores")
    restore.add_argument("archive", type=Path)
    restore.add_argument("--restart", action="store_true", help="Ask the host to relaunch afterwards")

    export_db = sub.add_parser("export-db", help="Export only the database files")
    export_db.add_argument("-o", "--output", type=Path, help="Directory for the archive")
    return parser


def _options_from_args(args: argparse.Namespace, defaults: BackupOptions) -> BackupOptions:
    values = defaults.to_dict()
    for name in values:
        if getattr(args, name, None) is False:
            values[name] = False
    return BackupOptions.from_dict(values)


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = _build_parser().parse_args(argv)
    config = Config(args.data_dir) if args.data_dir else get_config()
    ctx = create_context(config)
    set_language(ctx.config.language)

    try:
        if args.command == "backup":
            options = _options_from_args(args, ctx.config.backup_defaults)
            result = ctx.backup_manager.create_backup(options, args.output)
            print(t("backup.created", path=result.path))
        elif args.command == "verify":
            if not ctx.restore_manager.verify_backup(args.archive):
                print(t("backup.err_invalid"), file=sys.stderr)
                return 1
            print(t("backup.verify_ok"))
        elif args.command == "restore":

            def on_progress(stage: RestoreStage, fraction: float) -> None:
                logger.info(f"{fraction:>4.0%} {stage}")

            ctx.progress.subscribe(on_progress)
            result = ctx.restore_manager.restore_backup(args.archive, restart=args.restart)
            print(t("restore.done"))
            for warning in result.warnings:
                print(warning, file=sys.stderr)
            if not result.restart_requested:
                print(t("restore.restart_required"))
        elif args.command == "export-db":
            path = ctx.backup_manager.export_database_only(args.output)
            print(t("backup.database_exported", path=path))
    except BackupError as e:
        print(user_message(e, "backup" if args.command in ("backup", "export-db") else "restore"), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
