"""Per-path git status classification."""

from __future__ import annotations

from pathlib import Path

from logging_config import get_logger
from models import PathStatus, RepositoryHandle

from .backends import GitBackend
from .exceptions import GitOpsError
from .locator import is_metadata_path

logger = get_logger(__name__)

_INDEX_CHANGES = set("MADRCT")
_WORKTREE_CHANGES = set("MDT")
_UNMERGED = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


def parse_short_status(line: str | None) -> PathStatus:
    """Classify one porcelain v1 `XY <path>` line.

    An empty or missing line means git has nothing to report: the path is
    tracked and unchanged.
    """
    if not line:
        return PathStatus.CLEAN

    code = line[:2].ljust(2)
    if code == "??":
        return PathStatus.UNTRACKED
    if code == "!!":
        # ignored files behave like untracked ones for every operation
        return PathStatus.UNTRACKED
    if code in _UNMERGED:
        return PathStatus.STAGED_AND_MODIFIED

    index_state, worktree_state = code[0], code[1]
    staged = index_state in _INDEX_CHANGES
    modified = worktree_state in _WORKTREE_CHANGES
    if staged and modified:
        return PathStatus.STAGED_AND_MODIFIED
    if staged:
        return PathStatus.STAGED
    if modified:
        return PathStatus.MODIFIED

    logger.warning(f"Unrecognized status code {code!r}")
    return PathStatus.ERROR


class StatusInspector:
    """Answers "what is the git state of this path?"."""

    def __init__(self, backend: GitBackend):
        self.backend = backend

    def status_of(self, handle: RepositoryHandle | None, path: Path) -> PathStatus:
        if handle is None:
            return PathStatus.NOT_A_REPOSITORY
        if is_metadata_path(handle, path):
            return PathStatus.IS_METADATA_DIRECTORY

        try:
            lines = self.backend.short_status(handle, Path(path))
        except GitOpsError as e:
            logger.warning(f"Status query failed for {path}: {e}")
            return PathStatus.ERROR

        return parse_short_status(lines[0] if lines else None)
