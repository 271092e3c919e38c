"""Repository cloning with a single credential retry."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from error_handler import ErrorSeverity, handle_file_system_error
from logging_config import get_logger
from models import Credentials, OperationResult

from .backends import GitBackend
from .exceptions import AuthenticationError, GitOpsError
from .results import execution_failure, precondition, semantic

logger = get_logger(__name__)

CLONE_TITLE = "Clone Error"
CLONE_ERROR = "An error occurred during the cloning process."

CredentialPrompt = Callable[[], Optional[Credentials]]


class CredentialStore:
    """Two-line credentials file: identifier, then token."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Credentials | None:
        if not self.path.is_file():
            return None
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            handle_file_system_error(e, "read_credentials", self.path, ErrorSeverity.WARNING)
            return None
        if len(lines) < 2 or not lines[0].strip() or not lines[1].strip():
            logger.warning(f"Ignoring malformed credentials file {self.path}")
            return None
        return Credentials(identifier=lines[0].strip(), token=lines[1].strip())

    def save(self, credentials: Credentials):
        """Overwrite the file, readable by the owner only."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{credentials.identifier}\n{credentials.token}\n")
        os.chmod(self.path, 0o600)
        logger.info(f"Saved credentials to {self.path}")


def _is_empty_destination(destination: Path) -> bool:
    if not destination.exists():
        return True
    if not destination.is_dir():
        return False
    return next(destination.iterdir(), None) is None


class CloneService:
    def __init__(self, backend: GitBackend, store: CredentialStore, prompt: CredentialPrompt | None = None):
        self.backend = backend
        self.store = store
        self.prompt = prompt

    def clone(self, url: str, destination: Path, prompt: CredentialPrompt | None = None) -> OperationResult:
        """Clone `url` into an empty (or not yet existing) directory.

        A first attempt runs without credentials. If the remote asks for
        authentication, stored credentials are used, or `prompt` is asked
        for new ones, and the clone is retried exactly once.
        """
        url = (url or "").strip()
        if not url:
            return precondition(CLONE_TITLE, "Repository address can't be empty.")

        destination = Path(destination)
        try:
            empty = _is_empty_destination(destination)
        except OSError as e:
            return execution_failure(e, "clone", None, CLONE_TITLE, CLONE_ERROR)
        if not empty:
            return precondition(CLONE_TITLE, "Destination path is not an empty directory.")

        try:
            self.backend.clone(url, destination)
            return self._cloned(url, destination)
        except AuthenticationError as e:
            logger.info(f"Remote {url} requires credentials: {e.stderr}")
        except GitOpsError as e:
            return execution_failure(e, "clone", None, CLONE_TITLE, CLONE_ERROR)

        credentials = self.store.load()
        if credentials is None:
            ask = prompt or self.prompt
            credentials = ask() if ask else None
            if credentials is None:
                return semantic(CLONE_TITLE, "Clone cancelled: no credentials provided.")
            try:
                self.store.save(credentials)
            except OSError as e:
                handle_file_system_error(e, "save_credentials", self.store.path, ErrorSeverity.WARNING)

        try:
            self.backend.clone(url, destination, credentials)
        except GitOpsError as e:
            return execution_failure(e, "clone", None, CLONE_TITLE, CLONE_ERROR)
        return self._cloned(url, destination)

    def _cloned(self, url: str, destination: Path) -> OperationResult:
        logger.info(f"Cloned {url} into {destination}")
        return OperationResult.ok("Clone", f"Cloned into {destination}.", destination)
