"""Git operations engine for the file browser."""

from .backends import CliBackend, GitBackend, LibraryBackend, create_backend
from .clone import CredentialStore
from .exceptions import AuthenticationError, CommandSpawnError, GitCommandError, GitOpsError
from .locator import locate
from .runner import CommandRunner
from .workspace import GitWorkspace

__all__ = [
    "AuthenticationError",
    "CliBackend",
    "CommandRunner",
    "CommandSpawnError",
    "CredentialStore",
    "GitBackend",
    "GitCommandError",
    "GitOpsError",
    "GitWorkspace",
    "LibraryBackend",
    "create_backend",
    "locate",
]
