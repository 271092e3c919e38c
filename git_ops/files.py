"""File-level git operations: init, add, restore, rm and mv."""

from __future__ import annotations

from pathlib import Path

from logging_config import get_logger
from models import ErrorKind, OperationResult, PathStatus

from .backends import GitBackend
from .exceptions import GitOpsError
from .locator import locate, same_repository
from .results import NOT_A_REPOSITORY, execution_failure, precondition, semantic
from .status import StatusInspector

logger = get_logger(__name__)

INIT_TITLE = "Init Error"
ADD_TITLE = "Add Error"
RESTORE_TITLE = "Restore Error"
REMOVE_TITLE = "Remove Error"
MOVE_TITLE = "Move Error"

UNTRACKED_MESSAGE = "Git doesn't trace that file. Press add first."
METADATA_MESSAGE = "Files inside the .git directory can't be changed."
STATUS_ERROR = "An error occurred while reading the file status."


class FileService:
    def __init__(self, backend: GitBackend, inspector: StatusInspector | None = None):
        self.backend = backend
        self.inspector = inspector or StatusInspector(backend)

    def init(self, path: Path) -> OperationResult:
        path = Path(path)
        if not path.is_dir():
            return precondition(INIT_TITLE, "The file can't use git. choose the Directory.")
        if locate(path) is not None:
            return precondition(INIT_TITLE, "This directory already use git.")
        try:
            self.backend.init(path)
        except GitOpsError as e:
            return execution_failure(e, "init", None, INIT_TITLE,
                                     "An error occurred while initializing the repository.")
        logger.info(f"Initialized repository in {path}")
        return OperationResult.ok("Init", f"Initialized empty repository in {path}.", locate(path))

    def stage(self, path: Path) -> OperationResult:
        path = Path(path)
        handle = locate(path)
        if handle is None:
            return precondition(ADD_TITLE, NOT_A_REPOSITORY)
        if self.inspector.status_of(handle, path) is PathStatus.IS_METADATA_DIRECTORY:
            return precondition(ADD_TITLE, METADATA_MESSAGE)
        try:
            self.backend.add(handle, path)
        except GitOpsError as e:
            return execution_failure(e, "add", handle, ADD_TITLE, f"Could not add {path.name}.")
        return OperationResult.ok("Add", f"{path.name} staged.", self.inspector.status_of(handle, path))

    def unstage(self, path: Path) -> OperationResult:
        return self.restore(path, staged=True)

    def restore(self, path: Path, staged: bool = False) -> OperationResult:
        """Discard worktree changes, or with `staged` drop the path from the index."""
        path = Path(path)
        handle = locate(path)
        if handle is None:
            return precondition(RESTORE_TITLE, NOT_A_REPOSITORY)

        status = self.inspector.status_of(handle, path)
        rejected = self._reject_untouchable(status, RESTORE_TITLE)
        if rejected:
            return rejected
        if status is PathStatus.CLEAN:
            return semantic(RESTORE_TITLE, "Nothing to restore.", status)
        if staged and status is PathStatus.MODIFIED:
            return semantic(RESTORE_TITLE, "Nothing to restore.", status)
        if not staged and status is PathStatus.STAGED:
            return semantic(RESTORE_TITLE, "If you want restore, click restore --staged", status)

        try:
            self.backend.restore(handle, path, staged=staged)
        except GitOpsError as e:
            return execution_failure(e, "restore", handle, RESTORE_TITLE, f"Could not restore {path.name}.")
        return OperationResult.ok("Restore", f"{path.name} restored.", self.inspector.status_of(handle, path))

    def remove(self, path: Path, cached: bool = False) -> OperationResult:
        """`git rm`, or with `cached` stop tracking while keeping the file."""
        path = Path(path)
        handle = locate(path)
        if handle is None:
            return precondition(REMOVE_TITLE, NOT_A_REPOSITORY)

        rejected = self._reject_untouchable(self.inspector.status_of(handle, path), REMOVE_TITLE)
        if rejected:
            return rejected

        try:
            self.backend.remove(handle, path, cached=cached)
        except GitOpsError as e:
            return execution_failure(e, "rm", handle, REMOVE_TITLE, f"Could not remove {path.name}.")
        return OperationResult.ok("Remove", f"{path.name} removed.", path)

    def move(self, path: Path, destination: Path | str) -> OperationResult:
        """`git mv` within one repository.

        A relative destination is taken relative to the source's directory.
        """
        path = Path(path)
        handle = locate(path)
        if handle is None:
            return precondition(MOVE_TITLE, NOT_A_REPOSITORY)

        rejected = self._reject_untouchable(self.inspector.status_of(handle, path), MOVE_TITLE)
        if rejected:
            return rejected

        if destination is None or not str(destination).strip():
            return precondition(MOVE_TITLE, "Destination path cannot be empty.")
        target = Path(str(destination).strip())
        if not target.is_absolute():
            target = path.absolute().parent / target
        target_dir = target if target.is_dir() else target.parent
        if not same_repository(handle, locate(target_dir)):
            return precondition(MOVE_TITLE, "This path is outside repository.")

        try:
            self.backend.move(handle, path, target)
        except GitOpsError as e:
            return execution_failure(e, "mv", handle, MOVE_TITLE, f"Could not move {path.name}.")
        return OperationResult.ok("Move", f"{path.name} moved to {target}.", target)

    def _reject_untouchable(self, status: PathStatus, title: str) -> OperationResult | None:
        if status is PathStatus.UNTRACKED:
            return semantic(title, UNTRACKED_MESSAGE, status)
        if status is PathStatus.IS_METADATA_DIRECTORY:
            return precondition(title, METADATA_MESSAGE)
        if status is PathStatus.ERROR:
            return OperationResult.fail(ErrorKind.EXECUTION, title, STATUS_ERROR, status)
        return None
