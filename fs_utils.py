"""Filesystem listing and file actions used by the browse view."""

from __future__ import annotations

import errno
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """One row of the file table."""

    path: Path
    is_dir: bool
    size: int
    modified: float

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_hidden(self) -> bool:
        return self.path.name.startswith(".")

    @property
    def modified_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.modified)

    def display_size(self) -> str:
        if self.is_dir:
            return ""
        size = float(self.size)
        for unit in ("B", "KB", "MB", "GB"):
            if size < 1024 or unit == "GB":
                return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} GB"


def list_directory(directory: Path, show_hidden: bool = False) -> list[FileEntry]:
    """Entries of `directory`, directories first, then by case-insensitive name.

    Raises OSError if the directory itself cannot be read. Entries that
    vanish or cannot be stat'ed while listing are skipped.
    """
    entries = []
    for child in Path(directory).iterdir():
        if not show_hidden and child.name.startswith("."):
            continue
        try:
            st = child.stat()
        except OSError as e:
            logger.debug(f"Skipping {child}: {e}")
            continue
        entries.append(FileEntry(path=child, is_dir=child.is_dir(), size=st.st_size, modified=st.st_mtime))

    entries.sort(key=lambda e: (not e.is_dir, e.name.lower()))
    return entries


def check_entry_name(name: str) -> str:
    """Strip `name` and reject names that are blank or leave the directory."""
    name = name.strip()
    if not name:
        raise ValueError("A name is required.")
    if name in (".", "..") or "/" in name or (os.altsep and os.altsep in name) or os.sep in name:
        raise ValueError(f"'{name}' is not a valid file name.")
    return name


def create_entry(location: Path, name: str, directory: bool = False) -> Path:
    """Create an empty file or directory named `name` next to or inside `location`.

    A directory `location` receives the new entry; for a file the entry is
    created beside it. Raises FileExistsError if the name is taken.
    """
    location = Path(location)
    parent = location if location.is_dir() else location.parent
    target = parent / check_entry_name(name)
    if directory:
        target.mkdir()
    else:
        target.touch(exist_ok=False)
    logger.info(f"Created {'directory' if directory else 'file'} {target}")
    return target


def rename_entry(path: Path, new_name: str) -> Path:
    """Rename `path` within its parent directory."""
    path = Path(path)
    target = path.with_name(check_entry_name(new_name))
    if target.exists() or target.is_symlink():
        raise FileExistsError(errno.EEXIST, "File exists", str(target))
    path.rename(target)
    logger.info(f"Renamed {path} to {target.name}")
    return target


def delete_entry(path: Path):
    """Delete a file, or a directory with everything below it."""
    path = Path(path)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    logger.info(f"Deleted {path}")
