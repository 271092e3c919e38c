"""Commit creation and read-only history queries."""

from __future__ import annotations

from logging_config import get_logger
from models import OperationResult, RepositoryHandle

from .backends import GitBackend
from .exceptions import GitOpsError
from .results import NOT_A_REPOSITORY, execution_failure, precondition, semantic

logger = get_logger(__name__)

COMMIT_TITLE = "Commit Error"
HISTORY_TITLE = "History Error"

DEFAULT_HISTORY_LIMIT = 200


class CommitService:
    def __init__(self, backend: GitBackend, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.backend = backend
        self.history_limit = history_limit

    def staged_file_set(self, handle: RepositoryHandle | None) -> OperationResult:
        """Paths that the next commit would record."""
        if handle is None:
            return precondition(COMMIT_TITLE, NOT_A_REPOSITORY)
        try:
            staged = self.backend.staged_files(handle)
        except GitOpsError as e:
            return execution_failure(e, "staged_files", handle, COMMIT_TITLE,
                                     "An error occurred while trying to load staged files.")
        return OperationResult.ok("Staged Files", f"{len(staged)} staged files", staged)

    def commit(self, handle: RepositoryHandle | None, message: str) -> OperationResult:
        """Commit the index.

        Validation runs in order: repository, message, staged set. Nothing
        is executed unless all three pass.
        """
        if handle is None:
            return precondition(COMMIT_TITLE, NOT_A_REPOSITORY)
        if not message or not message.strip():
            return precondition(COMMIT_TITLE, "Commit message cannot be empty.")

        staged = self.staged_file_set(handle)
        if not staged:
            return staged
        if not staged.data:
            return semantic(COMMIT_TITLE, "There's nothing to commit.")

        try:
            sha = self.backend.commit(handle, message)
        except GitOpsError as e:
            return execution_failure(e, "commit", handle, COMMIT_TITLE,
                                     "An error occurred during the commit process.")

        logger.info(f"Committed {len(staged.data)} files as {sha[:10]} in {handle.work_tree}")
        return OperationResult.ok("Commit", f"Committed {len(staged.data)} files.", sha)

    def history(self, handle: RepositoryHandle | None, limit: int | None = None) -> OperationResult:
        if handle is None:
            return precondition(HISTORY_TITLE, NOT_A_REPOSITORY)
        try:
            commits = self.backend.log(handle, limit or self.history_limit)
        except GitOpsError as e:
            return execution_failure(e, "log", handle, HISTORY_TITLE,
                                     "An error occurred while loading the commit history.")
        return OperationResult.ok("History", f"{len(commits)} commits", commits)

    def graph(self, handle: RepositoryHandle | None) -> OperationResult:
        if handle is None:
            return precondition(HISTORY_TITLE, NOT_A_REPOSITORY)
        try:
            lines = self.backend.graph(handle)
        except GitOpsError as e:
            return execution_failure(e, "graph", handle, HISTORY_TITLE,
                                     "An error occurred while loading the commit graph.")
        return OperationResult.ok("Graph", f"{len(lines)} lines", lines)

    def details(self, handle: RepositoryHandle | None, sha: str) -> OperationResult:
        if handle is None:
            return precondition(HISTORY_TITLE, NOT_A_REPOSITORY)
        sha = (sha or "").strip()
        if not sha:
            return precondition(HISTORY_TITLE, "No commit selected.")
        try:
            info = self.backend.show_commit(handle, sha)
        except GitOpsError as e:
            return execution_failure(e, "show_commit", handle, HISTORY_TITLE,
                                     f"Could not load commit '{sha}'.")
        return OperationResult.ok("Commit Details", info.summary, info)
