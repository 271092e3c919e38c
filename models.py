"""Data models for Git File Browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

MERGE_MARKER = "MERGE_HEAD"


@dataclass(frozen=True)
class RepositoryHandle:
    """A resolved repository: working tree root plus its `.git` directory."""

    work_tree: Path
    git_dir: Path

    @property
    def merge_head(self) -> Path:
        """File git writes while a merge is unresolved."""
        return self.git_dir / MERGE_MARKER


class PathStatus(Enum):
    """Git classification of a single path."""

    UNTRACKED = "untracked"
    CLEAN = "clean"
    MODIFIED = "modified"
    STAGED = "staged"
    STAGED_AND_MODIFIED = "staged_and_modified"
    IS_METADATA_DIRECTORY = "git_dir"
    NOT_A_REPOSITORY = "none"
    ERROR = "error"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_tracked(self) -> bool:
        return self in (
            PathStatus.CLEAN,
            PathStatus.MODIFIED,
            PathStatus.STAGED,
            PathStatus.STAGED_AND_MODIFIED,
        )


_STATUS_LABELS = {
    PathStatus.UNTRACKED: "Untracked",
    PathStatus.CLEAN: "Clean",
    PathStatus.MODIFIED: "Modified",
    PathStatus.STAGED: "Staged",
    PathStatus.STAGED_AND_MODIFIED: "Staged + Modified",
    PathStatus.IS_METADATA_DIRECTORY: "Git dir",
    PathStatus.NOT_A_REPOSITORY: "",
    PathStatus.ERROR: "Error",
}


StagedFileSet = frozenset  # frozenset[str] of repository-relative paths


@dataclass(frozen=True)
class BranchRef:
    """A branch name plus its remote-tracking qualifier."""

    name: str
    ref: str
    remote: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.remote is not None

    @classmethod
    def from_refname(cls, refname: str) -> BranchRef:
        """Parse `refs/heads/<n>` or `refs/remotes/<remote>/<n>`."""
        if refname.startswith("refs/heads/"):
            return cls(name=refname[len("refs/heads/"):], ref=refname)
        if refname.startswith("refs/remotes/"):
            short = refname[len("refs/remotes/"):]
            remote = short.split("/", 1)[0]
            return cls(name=short, ref=refname, remote=remote)
        return cls(name=refname, ref=f"refs/heads/{refname}")


def normalize_branch_name(name: str) -> str:
    """Strip `refs/heads/` or `refs/remotes/` from a branch selection."""
    name = name.strip()
    for prefix in ("refs/heads/", "refs/remotes/"):
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


@dataclass
class CommandResult:
    """Outcome of one git process invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    output: str = field(default="", repr=False)
    execution_failed: bool = False

    @property
    def ok(self) -> bool:
        return not self.execution_failed and self.returncode == 0

    @property
    def error_text(self) -> str:
        return "\n".join(self.stderr).strip() or "\n".join(self.stdout).strip()


class MergeState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    CONFLICT_DETECTED = "conflict_detected"
    FAILED = "failed"
    ABORTING = "aborting"
    ABORTED = "aborted"


_MERGE_TRANSITIONS = {
    MergeState.IDLE: {MergeState.RUNNING},
    MergeState.RUNNING: {MergeState.SUCCEEDED, MergeState.CONFLICT_DETECTED, MergeState.FAILED},
    MergeState.CONFLICT_DETECTED: {MergeState.ABORTING},
    MergeState.ABORTING: {MergeState.ABORTED},
}

_MERGE_TERMINAL = {MergeState.SUCCEEDED, MergeState.FAILED, MergeState.ABORTED}


class InvalidTransitionError(ValueError):
    """Raised when a merge attempt is moved to a state it cannot reach."""


@dataclass
class MergeAttempt:
    """State of a single merge operation."""

    target: str
    state: MergeState = MergeState.IDLE
    history: list[MergeState] = field(default_factory=lambda: [MergeState.IDLE])

    def advance(self, new_state: MergeState) -> None:
        if new_state not in _MERGE_TRANSITIONS.get(self.state, set()):
            raise InvalidTransitionError(
                f"Cannot move merge of '{self.target}' from {self.state.value} to {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    @property
    def is_finished(self) -> bool:
        return self.state in _MERGE_TERMINAL


@dataclass(frozen=True)
class CommitInfo:
    """A commit as shown in the history dialog."""

    sha: str
    parents: tuple[str, ...]
    author_name: str
    author_email: str
    committed_date: int
    summary: str

    @property
    def short_sha(self) -> str:
        return self.sha[:10]

    @property
    def committed_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.committed_date)


@dataclass(frozen=True)
class Credentials:
    """Identifier and token used for HTTP basic authentication."""

    identifier: str
    token: str = field(repr=False)


class ErrorKind(Enum):
    PRECONDITION = "precondition"
    EXECUTION = "execution"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class OperationResult:
    """What a caller-facing operation reports back to the UI."""

    success: bool
    title: str
    message: str
    kind: ErrorKind | None = None
    data: Any = None

    @classmethod
    def ok(cls, title: str, message: str, data: Any = None) -> OperationResult:
        return cls(success=True, title=title, message=message, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, title: str, message: str, data: Any = None) -> OperationResult:
        return cls(success=False, title=title, message=message, kind=kind, data=data)

    def __bool__(self) -> bool:
        return self.success
