"""Interchangeable VCS backends.

`CliBackend` drives the git binary through `CommandRunner`; `LibraryBackend`
uses GitPython's object API. Services depend only on `GitBackend`, and the
implementation is chosen by the `vcs_backend` setting.
"""

from __future__ import annotations

import base64
import os
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from git import Repo
from git.exc import GitCommandError as LibraryCommandError
from git.exc import GitError as LibraryError
from git.exc import ODBError

from logging_config import get_logger
from models import BranchRef, CommandResult, CommitInfo, Credentials, RepositoryHandle, StagedFileSet

from .exceptions import AuthenticationError, GitCommandError
from .runner import BASE_ENV, CommandRunner

logger = get_logger(__name__)

FIELD_SEP = "\x1f"
LOG_FORMAT = "%H%x1f%P%x1f%an%x1f%ae%x1f%ct%x1f%s"

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "invalid username or password",
    "http basic: access denied",
    "returned error: 401",
    "returned error: 403",
)


def is_auth_failure(text: str) -> bool:
    """True if git's diagnostics say the remote wants (other) credentials."""
    lowered = text.lower()
    return any(marker in lowered for marker in _AUTH_MARKERS)


def basic_auth_env(credentials: Credentials | None) -> dict[str, str]:
    """Environment that makes git send an HTTP basic auth header.

    Config passed through GIT_CONFIG_* is neither written to the cloned
    repository nor visible on the command line.
    """
    if credentials is None:
        return {}
    raw = f"{credentials.identifier}:{credentials.token}".encode("utf-8")
    header = "Authorization: Basic " + base64.b64encode(raw).decode("ascii")
    return {
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": "http.extraHeader",
        "GIT_CONFIG_VALUE_0": header,
    }


def parse_porcelain_z(output: str) -> StagedFileSet:
    """Staged paths (added, modified, removed, renamed) from `status --porcelain -z`."""
    staged: set[str] = set()
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        index_state, path = entry[0], entry[3:]
        if index_state in "RC":
            # the original path follows as its own entry
            if i < len(entries) and entries[i]:
                if index_state == "R":
                    staged.add(entries[i])
                i += 1
        if index_state in "AMDRCT":
            staged.add(path)
    return frozenset(staged)


def parse_log_line(line: str) -> CommitInfo | None:
    parts = line.split(FIELD_SEP)
    if len(parts) != 6:
        return None
    sha, parents, author_name, author_email, committed, summary = parts
    return CommitInfo(
        sha=sha,
        parents=tuple(parents.split()),
        author_name=author_name,
        author_email=author_email,
        committed_date=int(committed),
        summary=summary,
    )


def _path_args(handle: RepositoryHandle, path: Path) -> tuple[Path, str]:
    """Working directory and argument for a path-scoped command."""
    path = Path(os.path.normpath(Path(path).absolute()))
    if path == handle.work_tree:
        return handle.work_tree, "."
    return path.parent, path.name


def _relative(handle: RepositoryHandle, path: Path) -> str:
    return os.path.relpath(os.path.normpath(Path(path).absolute()), handle.work_tree)


class GitBackend(ABC):
    """Contract every VCS implementation fulfils."""

    name = "abstract"

    @abstractmethod
    def short_status(self, handle: RepositoryHandle, path: Path) -> list[str]:
        """Porcelain status lines scoped to exactly `path`."""

    @abstractmethod
    def staged_files(self, handle: RepositoryHandle) -> StagedFileSet:
        """Repository-relative paths staged for the next commit."""

    @abstractmethod
    def current_branch(self, handle: RepositoryHandle) -> str:
        """Short branch name, or the commit sha when HEAD is detached."""

    @abstractmethod
    def list_branches(self, handle: RepositoryHandle, include_remote: bool = True) -> list[BranchRef]:
        ...

    @abstractmethod
    def create_branch(self, handle: RepositoryHandle, name: str) -> None:
        ...

    @abstractmethod
    def delete_branch(self, handle: RepositoryHandle, name: str) -> None:
        ...

    @abstractmethod
    def rename_branch(self, handle: RepositoryHandle, old_name: str, new_name: str) -> None:
        ...

    @abstractmethod
    def checkout(self, handle: RepositoryHandle, name: str) -> None:
        ...

    @abstractmethod
    def add(self, handle: RepositoryHandle, path: Path) -> None:
        ...

    @abstractmethod
    def restore(self, handle: RepositoryHandle, path: Path, staged: bool = False) -> None:
        ...

    @abstractmethod
    def remove(self, handle: RepositoryHandle, path: Path, cached: bool = False) -> None:
        ...

    @abstractmethod
    def move(self, handle: RepositoryHandle, source: Path, destination: Path) -> None:
        ...

    @abstractmethod
    def commit(self, handle: RepositoryHandle, message: str) -> str:
        """Record the index as a new commit and return its sha."""

    @abstractmethod
    def merge(self, handle: RepositoryHandle, branch: str) -> CommandResult:
        """Merge `branch` into HEAD and wait for it to finish.

        A refused or conflicted merge is reported through the result's
        return code, not raised.
        """

    @abstractmethod
    def abort_merge(self, handle: RepositoryHandle) -> None:
        ...

    @abstractmethod
    def clone(self, url: str, destination: Path, credentials: Credentials | None = None) -> None:
        """Clone `url` into `destination`; raises AuthenticationError on auth failures."""

    @abstractmethod
    def init(self, path: Path) -> None:
        ...

    @abstractmethod
    def log(self, handle: RepositoryHandle, limit: int) -> list[CommitInfo]:
        """Commits reachable from any ref, newest first."""

    @abstractmethod
    def graph(self, handle: RepositoryHandle) -> list[str]:
        ...

    @abstractmethod
    def show_commit(self, handle: RepositoryHandle, sha: str) -> CommitInfo:
        ...


class CliBackend(GitBackend):
    """Backend that shells out to the git binary."""

    name = "cli"

    def __init__(self, runner: CommandRunner | None = None):
        self.runner = runner or CommandRunner()

    def _check(self, handle: RepositoryHandle | None, args: list[str], *, cwd: Path | None = None,
               env: dict[str, str] | None = None) -> CommandResult:
        result = self.runner.run(handle, args, cwd=cwd, env=env)
        if not result.ok:
            raise GitCommandError(args, result.returncode, result.error_text)
        return result

    def short_status(self, handle, path):
        cwd, arg = _path_args(handle, path)
        return self._check(handle, ["status", "--porcelain", "--", arg], cwd=cwd).stdout

    def staged_files(self, handle):
        result = self._check(handle, ["status", "--porcelain", "-z", "--untracked-files=no"])
        return parse_porcelain_z(result.output)

    def current_branch(self, handle):
        result = self.runner.run(handle, ["symbolic-ref", "--short", "-q", "HEAD"])
        if result.ok and result.stdout:
            return result.stdout[0].strip()
        return self._check(handle, ["rev-parse", "HEAD"]).stdout[0].strip()

    def list_branches(self, handle, include_remote=True):
        args = ["for-each-ref", "--format=%(refname)", "refs/heads"]
        if include_remote:
            args.append("refs/remotes")
        refs = []
        for line in self._check(handle, args).stdout:
            line = line.strip()
            if not line or line.endswith("/HEAD"):
                continue
            refs.append(BranchRef.from_refname(line))
        return refs

    def create_branch(self, handle, name):
        self._check(handle, ["branch", name])

    def delete_branch(self, handle, name):
        self._check(handle, ["branch", "-d", name])

    def rename_branch(self, handle, old_name, new_name):
        self._check(handle, ["branch", "-m", old_name, new_name])

    def checkout(self, handle, name):
        self._check(handle, ["checkout", name, "--"])

    def add(self, handle, path):
        cwd, arg = _path_args(handle, path)
        self._check(handle, ["add", "--", arg], cwd=cwd)

    def restore(self, handle, path, staged=False):
        cwd, arg = _path_args(handle, path)
        args = ["restore", "--staged", "--", arg] if staged else ["restore", "--", arg]
        self._check(handle, args, cwd=cwd)

    def remove(self, handle, path, cached=False):
        cwd, arg = _path_args(handle, path)
        args = ["rm"]
        if cached:
            args.append("--cached")
        if Path(path).is_dir():
            args.append("-r")
        self._check(handle, [*args, "--", arg], cwd=cwd)

    def move(self, handle, source, destination):
        cwd, arg = _path_args(handle, source)
        target = os.path.relpath(os.path.normpath(Path(destination).absolute()), cwd)
        self._check(handle, ["mv", "--", arg, target], cwd=cwd)

    def commit(self, handle, message):
        self._check(handle, ["commit", "-m", message])
        return self._check(handle, ["rev-parse", "HEAD"]).stdout[0].strip()

    def merge(self, handle, branch):
        return self.runner.run(handle, ["merge", "--no-edit", branch])

    def abort_merge(self, handle):
        self._check(handle, ["merge", "--abort"])

    def clone(self, url, destination, credentials=None):
        destination = Path(destination).absolute()
        args = ["clone", "--", url, str(destination)]
        result = self.runner.run(None, args, cwd=destination.parent, env=basic_auth_env(credentials))
        if result.ok:
            return
        if is_auth_failure(result.error_text):
            raise AuthenticationError(["clone", url], result.returncode, result.error_text)
        raise GitCommandError(["clone", url], result.returncode, result.error_text)

    def init(self, path):
        self._check(None, ["init"], cwd=Path(path))

    def log(self, handle, limit):
        result = self._check(handle, ["log", "--all", f"--max-count={limit}", f"--format={LOG_FORMAT}"])
        return [info for info in map(parse_log_line, result.stdout) if info is not None]

    def graph(self, handle):
        return self._check(handle, ["log", "--graph", "--pretty=format:"]).stdout

    def show_commit(self, handle, sha):
        result = self._check(handle, ["show", "-s", f"--format={LOG_FORMAT}", sha, "--"])
        info = parse_log_line(result.stdout[0]) if result.stdout else None
        if info is None:
            raise GitCommandError(["show", sha], result.returncode, "unexpected output")
        return info


_STREAM_PREFIX = re.compile(r"^\s*std(?:out|err): '(.*)'\s*$", re.S)


def _stream_text(value: str | bytes | None) -> str:
    """Undo GitPython's `stderr: '...'` decoration on exception streams."""
    if not value:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    match = _STREAM_PREFIX.match(value)
    return match.group(1) if match else value


def _commit_info(commit) -> CommitInfo:
    summary = commit.summary
    if isinstance(summary, bytes):
        summary = summary.decode("utf-8", errors="replace")
    return CommitInfo(
        sha=commit.hexsha,
        parents=tuple(p.hexsha for p in commit.parents),
        author_name=commit.author.name or "",
        author_email=commit.author.email or "",
        committed_date=int(commit.committed_date),
        summary=summary,
    )


class LibraryBackend(GitBackend):
    """Backend built on GitPython's repository objects."""

    name = "library"

    @contextmanager
    def _open(self, handle: RepositoryHandle, operation: str) -> Iterator[Repo]:
        with self._errors(operation):
            with Repo(handle.work_tree) as repo:
                yield repo

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except LibraryCommandError as e:
            raise GitCommandError([operation], e.status if isinstance(e.status, int) else 1,
                                  _stream_text(e.stderr)) from e
        except (LibraryError, ODBError, ValueError, OSError, IndexError) as e:
            raise GitCommandError([operation], 1, str(e)) from e

    def short_status(self, handle, path):
        with self._open(handle, "status") as repo:
            # GitPython runs from the work tree root, so the pathspec is
            # repository-relative instead of a name in the parent directory
            output = repo.git.status("--porcelain", "--", _relative(handle, path))
        return output.splitlines()

    def staged_files(self, handle):
        with self._open(handle, "status") as repo:
            if not repo.head.is_valid():
                # nothing committed yet: every index entry is an addition
                return frozenset(path for path, _stage in repo.index.entries)
            staged = set()
            for diff in repo.head.commit.diff():
                staged.update(p for p in (diff.a_path, diff.b_path) if p)
            return frozenset(staged)

    def current_branch(self, handle):
        with self._open(handle, "branch") as repo:
            if repo.head.is_detached:
                return repo.head.commit.hexsha
            return repo.active_branch.name

    def list_branches(self, handle, include_remote=True):
        prefixes = ("refs/heads/", "refs/remotes/") if include_remote else ("refs/heads/",)
        with self._open(handle, "branch") as repo:
            refs = [ref.path for ref in repo.refs]
        heads = [BranchRef.from_refname(r) for r in refs if r.startswith(prefixes[0])]
        remotes = [
            BranchRef.from_refname(r)
            for r in refs
            if len(prefixes) > 1 and r.startswith(prefixes[1]) and not r.endswith("/HEAD")
        ]
        return heads + remotes

    def create_branch(self, handle, name):
        with self._open(handle, "branch") as repo:
            if name in [head.name for head in repo.heads]:
                raise GitCommandError(["branch", name], 128, f"fatal: a branch named '{name}' already exists")
            repo.create_head(name)

    def delete_branch(self, handle, name):
        with self._open(handle, "branch") as repo:
            repo.delete_head(name)

    def rename_branch(self, handle, old_name, new_name):
        with self._open(handle, "branch") as repo:
            repo.heads[old_name].rename(new_name)

    def checkout(self, handle, name):
        with self._open(handle, "checkout") as repo:
            repo.git.checkout(name, "--")

    def add(self, handle, path):
        with self._open(handle, "add") as repo:
            repo.index.add([_relative(handle, path)])

    def restore(self, handle, path, staged=False):
        with self._open(handle, "restore") as repo:
            if staged:
                repo.git.restore("--staged", "--", _relative(handle, path))
            else:
                repo.index.checkout(paths=[_relative(handle, path)], force=True)

    def remove(self, handle, path, cached=False):
        with self._open(handle, "rm") as repo:
            repo.index.remove([_relative(handle, path)], working_tree=not cached, r=Path(path).is_dir())

    def move(self, handle, source, destination):
        with self._open(handle, "mv") as repo:
            repo.index.move([_relative(handle, source), _relative(handle, destination)])

    def commit(self, handle, message):
        with self._open(handle, "commit") as repo:
            return repo.index.commit(message).hexsha

    def merge(self, handle, branch):
        args = ("merge", "--no-edit", branch)
        with self._open(handle, "merge") as repo:
            try:
                output = repo.git.merge(branch, no_edit=True)
            except LibraryCommandError as e:
                if not isinstance(e.status, int):
                    raise
                return CommandResult(
                    args=args,
                    returncode=e.status,
                    stdout=_stream_text(e.stdout).splitlines(),
                    stderr=_stream_text(e.stderr).splitlines(),
                    output=_stream_text(e.stdout),
                )
        return CommandResult(args=args, returncode=0, stdout=output.splitlines(), output=output)

    def abort_merge(self, handle):
        with self._open(handle, "merge") as repo:
            repo.git.merge(abort=True)

    def clone(self, url, destination, credentials=None):
        env = {**BASE_ENV, **basic_auth_env(credentials)}
        try:
            Repo.clone_from(url, str(Path(destination).absolute()), env=env).close()
        except LibraryCommandError as e:
            stderr = _stream_text(e.stderr)
            status = e.status if isinstance(e.status, int) else 1
            if is_auth_failure(stderr):
                raise AuthenticationError(["clone", url], status, stderr) from e
            raise GitCommandError(["clone", url], status, stderr) from e
        except (LibraryError, OSError) as e:
            raise GitCommandError(["clone", url], 1, str(e)) from e

    def init(self, path):
        with self._errors("init"):
            Repo.init(str(path)).close()

    def log(self, handle, limit):
        with self._open(handle, "log") as repo:
            return [_commit_info(c) for c in repo.iter_commits(rev="--all", max_count=limit)]

    def graph(self, handle):
        with self._open(handle, "log") as repo:
            return repo.git.log("--graph", "--pretty=format:").splitlines()

    def show_commit(self, handle, sha):
        with self._open(handle, "show") as repo:
            return _commit_info(repo.commit(sha))


def create_backend(name: str, runner: CommandRunner | None = None) -> GitBackend:
    """Instantiate the backend named by the `vcs_backend` setting."""
    if name == CliBackend.name:
        return CliBackend(runner)
    if name == LibraryBackend.name:
        return LibraryBackend()
    raise ValueError(f"Unknown VCS backend: {name!r}")
