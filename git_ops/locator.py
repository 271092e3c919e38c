"""Resolve the repository a filesystem path belongs to."""

from __future__ import annotations

import os
from pathlib import Path

from models import RepositoryHandle

GIT_DIR_NAME = ".git"


def _absolute(path: Path | str) -> Path:
    # normpath drops ".." without resolving symlinks
    return Path(os.path.normpath(Path(path).absolute()))


def locate(path: Path | str) -> RepositoryHandle | None:
    """Walk up from `path` to the first directory holding a `.git` directory.

    Returns None when `path` does not exist or no ancestor is a repository.
    No git process is started.
    """
    p = _absolute(path)
    if not p.exists():
        return None

    start = p if p.is_dir() else p.parent
    for candidate in (start, *start.parents):
        git_dir = candidate / GIT_DIR_NAME
        if git_dir.is_dir():
            return RepositoryHandle(work_tree=candidate, git_dir=git_dir)
    return None


def is_metadata_path(handle: RepositoryHandle, path: Path | str) -> bool:
    """True if `path` is the metadata directory or lies inside it."""
    p = _absolute(path)
    return p == handle.git_dir or handle.git_dir in p.parents


def same_repository(first: RepositoryHandle | None, second: RepositoryHandle | None) -> bool:
    if first is None or second is None:
        return False
    return first.git_dir == second.git_dir
