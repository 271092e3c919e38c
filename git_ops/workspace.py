"""Caller-facing facade over the git services.

Every operation takes the path it acts on explicitly and resolves the
repository afresh, so nothing about a previous selection is remembered.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from config import get_credentials_path, get_history_limit, get_vcs_backend
from logging_config import get_logger, log_performance
from metrics import record_git_operation
from models import OperationResult, PathStatus, RepositoryHandle

from .backends import GitBackend, create_backend
from .branches import BranchService
from .clone import CloneService, CredentialPrompt, CredentialStore
from .commits import DEFAULT_HISTORY_LIMIT, CommitService
from .files import FileService
from .locator import locate
from .merge import MergeOrchestrator
from .results import NO_FILE_SELECTED, precondition
from .runner import CommandRunner
from .status import StatusInspector

logger = get_logger(__name__)


class GitWorkspace:
    def __init__(
        self,
        backend: GitBackend,
        credential_store: CredentialStore | None = None,
        credential_prompt: CredentialPrompt | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.backend = backend
        self.inspector = StatusInspector(backend)
        self.branches = BranchService(backend)
        self.commits = CommitService(backend, history_limit)
        self.merger = MergeOrchestrator(backend)
        self.files = FileService(backend, self.inspector)
        self.cloner = CloneService(
            backend,
            credential_store or CredentialStore(Path.cwd() / "user_information.txt"),
            credential_prompt,
        )

    @classmethod
    def from_config(cls, cfg: dict, credential_prompt: CredentialPrompt | None = None) -> GitWorkspace:
        runner = CommandRunner(shell=cfg.get("shell") or "/bin/sh",
                               git_executable=cfg.get("git_executable") or "git")
        backend = create_backend(get_vcs_backend(cfg), runner)
        logger.info(f"Using {backend.name} git backend")
        return cls(
            backend,
            credential_store=CredentialStore(get_credentials_path(cfg)),
            credential_prompt=credential_prompt,
            history_limit=get_history_limit(cfg),
        )

    def _timed(self, operation: str, path, call: Callable[[], OperationResult]) -> OperationResult:
        if path is None:
            return precondition("Git Error", NO_FILE_SELECTED)
        start = time.time()
        result = call()
        duration_ms = (time.time() - start) * 1000
        record_git_operation(operation, result.success, duration_ms, None if result.success else result.message)
        log_performance(logger, operation, duration_ms, success=result.success)
        return result

    def _handle(self, path) -> RepositoryHandle | None:
        return locate(path)

    # Queries

    def locate_repository(self, path: Path | None) -> RepositoryHandle | None:
        if path is None:
            return None
        return locate(path)

    def status_of(self, path: Path | None) -> PathStatus:
        if path is None:
            return PathStatus.NOT_A_REPOSITORY
        return self.inspector.status_of(locate(path), Path(path))

    def current_branch(self, path: Path | None) -> str:
        if path is None:
            return ""
        return self.branches.current_branch(locate(path))

    def list_branches(self, path: Path | None) -> OperationResult:
        return self._timed("list_branches", path, lambda: self.branches.list_branches(self._handle(path)))

    def staged_files(self, path: Path | None) -> OperationResult:
        return self._timed("staged_files", path, lambda: self.commits.staged_file_set(self._handle(path)))

    def commit_history(self, path: Path | None, limit: int | None = None) -> OperationResult:
        return self._timed("commit_history", path, lambda: self.commits.history(self._handle(path), limit))

    def commit_graph(self, path: Path | None) -> OperationResult:
        return self._timed("commit_graph", path, lambda: self.commits.graph(self._handle(path)))

    def commit_details(self, path: Path | None, sha: str) -> OperationResult:
        return self._timed("commit_details", path, lambda: self.commits.details(self._handle(path), sha))

    # Branches

    def create_branch(self, path: Path | None, name: str) -> OperationResult:
        return self._timed("create_branch", path, lambda: self.branches.create(self._handle(path), name))

    def delete_branch(self, path: Path | None, name: str) -> OperationResult:
        return self._timed("delete_branch", path, lambda: self.branches.delete(self._handle(path), name))

    def rename_branch(self, path: Path | None, old_name: str, new_name: str) -> OperationResult:
        return self._timed("rename_branch", path,
                           lambda: self.branches.rename(self._handle(path), old_name, new_name))

    def checkout_branch(self, path: Path | None, name: str) -> OperationResult:
        return self._timed("checkout", path, lambda: self.branches.checkout(self._handle(path), name))

    def merge_branch(self, path: Path | None, branch: str) -> OperationResult:
        return self._timed("merge", path, lambda: self.merger.merge(self._handle(path), branch))

    # Files

    def stage_file(self, path: Path | None) -> OperationResult:
        return self._timed("add", path, lambda: self.files.stage(path))

    def unstage_file(self, path: Path | None) -> OperationResult:
        return self._timed("unstage", path, lambda: self.files.unstage(path))

    def restore_file(self, path: Path | None) -> OperationResult:
        return self._timed("restore", path, lambda: self.files.restore(path))

    def remove_file(self, path: Path | None, cached: bool = False) -> OperationResult:
        return self._timed("rm", path, lambda: self.files.remove(path, cached=cached))

    def move_file(self, path: Path | None, destination: Path | str) -> OperationResult:
        return self._timed("mv", path, lambda: self.files.move(path, destination))

    def init_repository(self, path: Path | None) -> OperationResult:
        return self._timed("init", path, lambda: self.files.init(path))

    # Commit and clone

    def commit(self, path: Path | None, message: str) -> OperationResult:
        return self._timed("commit", path, lambda: self.commits.commit(self._handle(path), message))

    def clone(self, url: str, destination: Path | None, prompt: CredentialPrompt | None = None) -> OperationResult:
        return self._timed("clone", destination, lambda: self.cloner.clone(url, destination, prompt))
