"""Tests for the VCS backends and their parsing helpers."""

import base64
from pathlib import Path

import pytest

from git_ops.backends import (
    CliBackend,
    LibraryBackend,
    basic_auth_env,
    create_backend,
    is_auth_failure,
    parse_log_line,
    parse_porcelain_z,
)
from git_ops.exceptions import GitCommandError
from git_ops.locator import locate
from git_ops.runner import CommandRunner
from models import Credentials


class TestCreateBackend:
    """Tests for create_backend function."""

    def test_known_backends(self):
        """Both configured names resolve to their implementation."""
        runner = CommandRunner(git_executable="git")
        cli = create_backend("cli", runner)

        assert isinstance(cli, CliBackend)
        assert cli.runner is runner
        assert isinstance(create_backend("library"), LibraryBackend)

    def test_unknown_backend(self):
        """Unknown names are rejected."""
        with pytest.raises(ValueError):
            create_backend("svn")


class TestParsing:
    """Tests for output parsers."""

    def test_parse_porcelain_z(self):
        """Index-side changes are staged; renames contribute both paths."""
        output = "A  added.txt\0M  changed.txt\0 M worktree.txt\0D  gone.txt\0R  new.txt\0old.txt\0?? untracked.txt\0"

        assert parse_porcelain_z(output) == frozenset(
            {"added.txt", "changed.txt", "gone.txt", "new.txt", "old.txt"}
        )

    def test_parse_porcelain_z_empty(self):
        """Nothing staged yields an empty set."""
        assert parse_porcelain_z("") == frozenset()

    def test_parse_log_line(self):
        """Fields are split on the unit separator."""
        line = "\x1f".join(["a" * 40, "b" * 40 + " " + "c" * 40, "Ann", "ann@example.com", "1700000000", "Fix it"])
        info = parse_log_line(line)

        assert info.sha == "a" * 40
        assert info.parents == ("b" * 40, "c" * 40)
        assert info.author_email == "ann@example.com"
        assert info.committed_date == 1700000000
        assert info.summary == "Fix it"
        assert info.short_sha == "a" * 10

    def test_parse_log_line_malformed(self):
        """Lines with the wrong field count are ignored."""
        assert parse_log_line("garbage") is None


class TestAuthHelpers:
    """Tests for credential helpers."""

    @pytest.mark.parametrize(
        "text",
        [
            "fatal: Authentication failed for 'https://example.com/repo.git/'",
            "fatal: could not read Username for 'https://example.com': terminal prompts disabled",
            "remote: HTTP Basic: Access denied",
            "fatal: unable to access 'https://x/': The requested URL returned error: 403",
        ],
    )
    def test_auth_failures(self, text):
        """Typical credential rejections are recognized."""
        assert is_auth_failure(text)

    def test_other_failures(self):
        """Unrelated errors are not authentication failures."""
        assert not is_auth_failure("fatal: repository 'https://x/' not found")
        assert not is_auth_failure("")

    def test_basic_auth_env(self):
        """Credentials become a one-off http.extraHeader setting."""
        env = basic_auth_env(Credentials(identifier="alice", token="s3cret"))

        assert env["GIT_CONFIG_COUNT"] == "1"
        assert env["GIT_CONFIG_KEY_0"] == "http.extraHeader"
        encoded = env["GIT_CONFIG_VALUE_0"].split("Basic ", 1)[1]
        assert base64.b64decode(encoded).decode() == "alice:s3cret"
        assert basic_auth_env(None) == {}


class TestBackendContract:
    """Behaviour both backends share, run against real repositories."""

    def test_current_branch(self, backend, temp_git_repo: Path):
        """HEAD on main is reported by name."""
        assert backend.current_branch(locate(temp_git_repo)) == "main"

    def test_current_branch_detached(self, backend, temp_git_repo: Path, git):
        """A detached HEAD is reported as the commit sha."""
        sha = git(temp_git_repo, "rev-parse", "HEAD").strip()
        git(temp_git_repo, "checkout", "--detach")

        assert backend.current_branch(locate(temp_git_repo)) == sha

    def test_staged_files_before_first_commit(self, backend, empty_git_repo: Path, git):
        """Without HEAD every index entry is staged."""
        (empty_git_repo / "a.txt").write_text("a")
        git(empty_git_repo, "add", "a.txt")

        assert backend.staged_files(locate(empty_git_repo)) == frozenset({"a.txt"})

    def test_staged_files_rename(self, backend, temp_git_repo: Path, git):
        """A staged rename contributes both the old and the new path."""
        git(temp_git_repo, "mv", "README.md", "DOCS.md")

        staged = backend.staged_files(locate(temp_git_repo))

        assert {"README.md", "DOCS.md"} <= staged

    def test_commit_returns_sha(self, backend, temp_git_repo: Path, git):
        """The sha of the new commit is HEAD afterwards."""
        handle = locate(temp_git_repo)
        (temp_git_repo / "b.txt").write_text("b")
        backend.add(handle, temp_git_repo / "b.txt")

        sha = backend.commit(handle, "Add b")

        assert sha == git(temp_git_repo, "rev-parse", "HEAD").strip()
        assert git(temp_git_repo, "log", "-1", "--format=%s").strip() == "Add b"

    def test_failure_raises_git_command_error(self, backend, temp_git_repo: Path):
        """Backend failures surface as GitCommandError."""
        with pytest.raises(GitCommandError):
            backend.checkout(locate(temp_git_repo), "does-not-exist")

    def test_init(self, backend, temp_dir: Path):
        """Init creates the metadata directory."""
        backend.init(temp_dir)
        assert (temp_dir / ".git").is_dir()

    def test_short_status_in_subdirectory(self, backend, temp_git_repo: Path, git):
        """Both backends scope the query to the one path and report it from the root."""
        docs = temp_git_repo / "docs"
        docs.mkdir()
        (docs / "index.md").write_text("index\n")
        git(temp_git_repo, "add", "docs/index.md")
        git(temp_git_repo, "commit", "-q", "-m", "Docs")
        (docs / "notes.txt").write_text("notes\n")

        assert backend.short_status(locate(docs), docs / "notes.txt") == ["?? docs/notes.txt"]
        assert backend.short_status(locate(docs), docs / "index.md") == []
