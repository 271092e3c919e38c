"""Merge execution with conflict detection and automatic abort."""

from __future__ import annotations

from logging_config import get_logger
from models import MergeAttempt, MergeState, OperationResult, RepositoryHandle, normalize_branch_name

from .backends import GitBackend
from .exceptions import GitOpsError
from .results import NOT_A_REPOSITORY, execution_failure, precondition, semantic

logger = get_logger(__name__)

MERGE_TITLE = "Merge Error"
MERGE_ERROR = "An error occurred during the merge process."
CONFLICT_MESSAGE = "Failed Merge, Already merge --abort"
SUCCESS_MESSAGE = "Successfully Merge"
MERGE_IN_PROGRESS = "A merge is already in progress."


def merge_in_progress(handle: RepositoryHandle) -> bool:
    """True while git's MERGE_HEAD marker exists with content.

    Raises OSError if the marker exists but cannot be read.
    """
    marker = handle.merge_head
    if not marker.is_file():
        return False
    return bool(marker.read_text(encoding="utf-8", errors="replace").strip())


class MergeOrchestrator:
    """Merges a branch into HEAD and backs out of conflicted merges.

    Each call drives one `MergeAttempt` through
    IDLE -> RUNNING -> SUCCEEDED | FAILED | CONFLICT_DETECTED -> ABORTING -> ABORTED
    and returns it as the result's data.
    """

    def __init__(self, backend: GitBackend):
        self.backend = backend

    def merge(self, handle: RepositoryHandle | None, branch: str) -> OperationResult:
        if handle is None:
            return precondition(MERGE_TITLE, NOT_A_REPOSITORY)
        target = normalize_branch_name(branch or "")
        if not target:
            return precondition(MERGE_TITLE, "No branch selected.")

        attempt = MergeAttempt(target=target)
        try:
            current = self.backend.current_branch(handle)
        except GitOpsError as e:
            return execution_failure(e, "merge", handle, MERGE_TITLE, MERGE_ERROR, attempt)
        if target == current:
            return precondition(MERGE_TITLE, "Same branch selected")
        try:
            unresolved = merge_in_progress(handle)
        except OSError as e:
            return execution_failure(e, "merge", handle, MERGE_TITLE, MERGE_ERROR, attempt)
        if unresolved:
            # left unresolved by an earlier merge
            return precondition(MERGE_TITLE, MERGE_IN_PROGRESS)

        attempt.advance(MergeState.RUNNING)
        logger.info(f"Merging {target} into {current} in {handle.work_tree}")
        try:
            result = self.backend.merge(handle, target)
            conflicted = merge_in_progress(handle)
        except (GitOpsError, OSError) as e:
            # the attempt stays RUNNING: whether git touched the tree is unknown
            return execution_failure(e, "merge", handle, MERGE_TITLE, MERGE_ERROR, attempt)

        if conflicted:
            attempt.advance(MergeState.CONFLICT_DETECTED)
            return self._abort(handle, attempt)

        if result.ok:
            attempt.advance(MergeState.SUCCEEDED)
            return OperationResult.ok("Merge", SUCCESS_MESSAGE, attempt)

        attempt.advance(MergeState.FAILED)
        logger.warning(f"Merge of {target} refused: {result.error_text}")
        return semantic(MERGE_TITLE, result.error_text or MERGE_ERROR, attempt)

    def _abort(self, handle: RepositoryHandle, attempt: MergeAttempt) -> OperationResult:
        attempt.advance(MergeState.ABORTING)
        logger.warning(f"Merge of {attempt.target} conflicted, aborting")
        try:
            self.backend.abort_merge(handle)
        except GitOpsError as e:
            return execution_failure(e, "merge_abort", handle, MERGE_TITLE, MERGE_ERROR, attempt)
        attempt.advance(MergeState.ABORTED)
        return semantic(MERGE_TITLE, CONFLICT_MESSAGE, attempt)
