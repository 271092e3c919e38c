"""Exception hierarchy for git operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from models import InvalidTransitionError

if TYPE_CHECKING:
    from models import CommandResult

__all__ = [
    "GitOpsError",
    "CommandSpawnError",
    "GitCommandError",
    "AuthenticationError",
    "InvalidTransitionError",
]


class GitOpsError(Exception):
    """Base error for all git operation failures."""


class CommandSpawnError(GitOpsError):
    """Raised when the git process could not be started at all."""

    def __init__(self, command: str, reason: str, result: CommandResult | None = None):
        super().__init__(f"Could not run '{command}': {reason}")
        self.command = command
        self.reason = reason
        self.result = result


class GitCommandError(GitOpsError):
    """Raised when a git invocation ran but reported failure."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str | None = None):
        message = "Git command failed"
        if command:
            message = f"Git command failed: git {' '.join(command)}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr or ""


class AuthenticationError(GitCommandError):
    """Raised when a remote rejected or required credentials."""
