"""Branch listing, creation, deletion, renaming and checkout."""

from __future__ import annotations

from logging_config import get_logger
from models import BranchRef, OperationResult, RepositoryHandle, normalize_branch_name

from .backends import GitBackend
from .exceptions import GitOpsError
from .results import NOT_A_REPOSITORY, execution_failure, precondition

logger = get_logger(__name__)

CREATE_TITLE = "Branch Creation Error"
DELETE_TITLE = "Branch Deletion Error"
RENAME_TITLE = "Branch Rename Error"
CHECKOUT_TITLE = "Checkout Error"
LOAD_TITLE = "Branch Load Error"


class BranchService:
    def __init__(self, backend: GitBackend):
        self.backend = backend

    def current_branch(self, handle: RepositoryHandle | None) -> str:
        """Branch HEAD points at, the commit sha when detached, "" when unknown."""
        if handle is None:
            return ""
        try:
            return self.backend.current_branch(handle)
        except GitOpsError as e:
            logger.warning(f"Could not read current branch of {handle.work_tree}: {e}")
            return ""

    def list_branches(self, handle: RepositoryHandle | None) -> OperationResult:
        """Local branches followed by remote-tracking ones, in refname order."""
        if handle is None:
            return precondition(LOAD_TITLE, NOT_A_REPOSITORY)
        try:
            branches: list[BranchRef] = self.backend.list_branches(handle)
        except GitOpsError as e:
            return execution_failure(e, "list_branches", handle, LOAD_TITLE,
                                     "An error occurred while loading branches.")
        return OperationResult.ok("Branches", f"{len(branches)} branches", branches)

    def create(self, handle: RepositoryHandle | None, name: str) -> OperationResult:
        if handle is None:
            return precondition(CREATE_TITLE, NOT_A_REPOSITORY)
        name = (name or "").strip()
        if not name:
            return precondition(CREATE_TITLE, "Branch name cannot be empty.")
        try:
            self.backend.create_branch(handle, name)
        except GitOpsError as e:
            return execution_failure(e, "create_branch", handle, CREATE_TITLE,
                                     f"Could not create branch '{name}'.")
        logger.info(f"Created branch {name} in {handle.work_tree}")
        return OperationResult.ok("Branch Created", f"Branch '{name}' created.", name)

    def delete(self, handle: RepositoryHandle | None, name: str) -> OperationResult:
        if handle is None:
            return precondition(DELETE_TITLE, NOT_A_REPOSITORY)
        name = normalize_branch_name(name or "")
        if not name:
            return precondition(DELETE_TITLE, "No branch selected.")
        try:
            self.backend.delete_branch(handle, name)
        except GitOpsError as e:
            return execution_failure(e, "delete_branch", handle, DELETE_TITLE,
                                     f"Could not delete branch '{name}'.")
        logger.info(f"Deleted branch {name} in {handle.work_tree}")
        return OperationResult.ok("Branch Deleted", f"Branch '{name}' deleted.", name)

    def rename(self, handle: RepositoryHandle | None, old_name: str, new_name: str) -> OperationResult:
        if handle is None:
            return precondition(RENAME_TITLE, NOT_A_REPOSITORY)
        old_name = normalize_branch_name(old_name or "")
        new_name = (new_name or "").strip()
        if not old_name or not new_name:
            return precondition(RENAME_TITLE, "No branch selected or new branch name is empty.")
        try:
            self.backend.rename_branch(handle, old_name, new_name)
        except GitOpsError as e:
            return execution_failure(e, "rename_branch", handle, RENAME_TITLE,
                                     f"Could not rename branch '{old_name}'.")
        logger.info(f"Renamed branch {old_name} -> {new_name} in {handle.work_tree}")
        return OperationResult.ok("Branch Renamed", f"Branch '{old_name}' renamed to '{new_name}'.", new_name)

    def checkout(self, handle: RepositoryHandle | None, name: str) -> OperationResult:
        """Switch branches and report the branch HEAD ends up on."""
        if handle is None:
            return precondition(CHECKOUT_TITLE, NOT_A_REPOSITORY)
        name = normalize_branch_name(name or "")
        if not name:
            return precondition(CHECKOUT_TITLE, "No branch selected.")
        try:
            self.backend.checkout(handle, name)
        except GitOpsError as e:
            return execution_failure(e, "checkout", handle, CHECKOUT_TITLE,
                                     f"Could not check out '{name}'.")
        current = self.current_branch(handle)
        return OperationResult.ok("Checkout", f"Switched to '{current}'.", current)
