"""Staging directories, ZIP archive I/O and overwrite-copy helpers."""

from __future__ import annotations

import shutil
import tempfile
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from appvault.core.errors import BackupIOError


@contextmanager
def staging_directory(prefix: str = "appvault_") -> Iterator[Path]:
    """Yield a fresh working directory that is removed on every exit path."""
    try:
        tmp = tempfile.TemporaryDirectory(prefix=prefix, ignore_cleanup_errors=True)
    except OSError as e:
        raise BackupIOError(f"Could not create staging directory: {e}") from e
    with tmp as tmp_dir:
        yield Path(tmp_dir)


def compress_directory(src: Path, dest: Path) -> Path:
    """
    Zip the *contents* of ``src`` into ``dest``.

    Entries are root-flattened (no wrapping folder); directory entries are
    kept so empty domain folders survive. An existing ``dest`` is replaced.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.unlink(missing_ok=True)
        with zipfile.ZipFile(dest, "w", zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(src.rglob("*")):
                zf.write(path, path.relative_to(src).as_posix())
    except (OSError, zipfile.LargeZipFile) as e:
        dest.unlink(missing_ok=True)
        raise BackupIOError(f"Could not write archive {dest.name}: {e}") from e

    logger.debug(f"Compressed {src} → {dest.name} ({dest.stat().st_size} bytes)")
    return dest


def extract_archive(archive: Path, dest: Path) -> None:
    """Extract a ZIP archive; member names are sanitized by ``zipfile``."""
    if not archive.is_file():
        raise BackupIOError(f"Backup file not found: {archive}")
    try:
        with zipfile.ZipFile(archive, "r") as zf:
            zf.extractall(dest)
    except (zipfile.BadZipFile, zlib.error, EOFError) as e:
        raise BackupIOError(f"Corrupt backup archive: {e}") from e
    except (RuntimeError, NotImplementedError, ValueError) as e:
        # encrypted members, unsupported compression, malformed headers
        raise BackupIOError(f"Unreadable backup archive {archive.name}: {e}") from e
    except OSError as e:
        raise BackupIOError(f"Could not extract {archive.name}: {e}") from e


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy_file(src: Path, dest: Path) -> None:
    """Copy a file or directory to ``dest``, replacing whatever is there."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    _remove(dest)
    if src.is_dir():
        shutil.copytree(src, dest)
    else:
        shutil.copy2(src, dest)


def copy_directory_contents(
    src: Path, dest: Path, names: tuple[str, ...] | None = None
) -> tuple[list[str], list[tuple[str, str]]]:
    """
    Copy every entry of ``src`` (or only ``names``) into ``dest``.

    Returns ``(copied, failures)``; a failed entry does not stop the rest.
    """
    copied: list[str] = []
    failures: list[tuple[str, str]] = []
    if not src.is_dir():
        return copied, failures

    entries = [src / n for n in names] if names is not None else sorted(src.iterdir())
    for entry in entries:
        if not entry.exists():
            continue
        try:
            copy_file(entry, dest / entry.name)
            copied.append(entry.name)
        except OSError as e:
            failures.append((entry.name, str(e)))
    return copied, failures
