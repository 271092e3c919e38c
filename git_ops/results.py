"""User-facing messages and OperationResult builders shared by the services."""

from __future__ import annotations

from error_handler import handle_git_error
from models import ErrorKind, OperationResult, RepositoryHandle

NO_FILE_SELECTED = "No file selected."
NOT_A_REPOSITORY = "This directory doesn't use git. Press init Button first."


def precondition(title: str, message: str) -> OperationResult:
    return OperationResult.fail(ErrorKind.PRECONDITION, title, message)


def semantic(title: str, message: str, data=None) -> OperationResult:
    return OperationResult.fail(ErrorKind.SEMANTIC, title, message, data)


def execution_failure(
    exception: BaseException,
    operation: str,
    handle: RepositoryHandle | None,
    title: str,
    message: str,
    data=None,
) -> OperationResult:
    """Log `exception` through the central handler and report a fixed message."""
    handle_git_error(
        exception,
        operation,
        repo_path=handle.work_tree if handle else None,
        user_message=message,
    )
    return OperationResult.fail(ErrorKind.EXECUTION, title, message, data)
