"""Tests for per-path status classification."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_ops.backends import GitBackend
from git_ops.exceptions import CommandSpawnError, GitCommandError
from git_ops.locator import locate
from git_ops.status import StatusInspector, parse_short_status
from models import PathStatus


@pytest.mark.parametrize(
    "line,expected",
    [
        ("?? new.txt", PathStatus.UNTRACKED),
        ("A  new.txt", PathStatus.STAGED),
        ("M  file.txt", PathStatus.STAGED),
        ("D  file.txt", PathStatus.STAGED),
        ("R  old.txt -> new.txt", PathStatus.STAGED),
        (" M file.txt", PathStatus.MODIFIED),
        (" D file.txt", PathStatus.MODIFIED),
        ("MM file.txt", PathStatus.STAGED_AND_MODIFIED),
        ("AM file.txt", PathStatus.STAGED_AND_MODIFIED),
        ("UU file.txt", PathStatus.STAGED_AND_MODIFIED),
        ("", PathStatus.CLEAN),
        (None, PathStatus.CLEAN),
    ],
)
def test_parse_short_status(line, expected):
    """Porcelain codes map onto path states."""
    assert parse_short_status(line) is expected


class TestStatusInspector:
    """Tests for StatusInspector against real repositories."""

    def test_untracked_staged_clean_cycle(self, backend, temp_git_repo: Path):
        """A new file moves from untracked to staged to clean."""
        inspector = StatusInspector(backend)
        handle = locate(temp_git_repo)
        target = temp_git_repo / "new.txt"
        target.write_text("hello\n")

        assert inspector.status_of(handle, target) is PathStatus.UNTRACKED

        backend.add(handle, target)
        assert inspector.status_of(handle, target) is PathStatus.STAGED

        backend.commit(handle, "Add new.txt")
        assert inspector.status_of(handle, target) is PathStatus.CLEAN

    def test_modified_and_staged_and_modified(self, backend, temp_git_repo: Path, git):
        """Worktree edits on top of staged ones are reported together."""
        inspector = StatusInspector(backend)
        handle = locate(temp_git_repo)
        readme = temp_git_repo / "README.md"

        readme.write_text("changed\n")
        assert inspector.status_of(handle, readme) is PathStatus.MODIFIED

        git(temp_git_repo, "add", "README.md")
        readme.write_text("changed again\n")
        assert inspector.status_of(handle, readme) is PathStatus.STAGED_AND_MODIFIED

    def test_file_in_subdirectory_with_spaces(self, backend, temp_git_repo: Path):
        """Paths with spaces below the root are queried correctly."""
        inspector = StatusInspector(backend)
        sub = temp_git_repo / "my docs"
        sub.mkdir()
        target = sub / "a file.txt"
        target.write_text("x")

        assert inspector.status_of(locate(target), target) is PathStatus.UNTRACKED

    def test_metadata_directory(self, temp_git_repo: Path):
        """The .git directory is reported without running git."""
        mock_backend = MagicMock(spec=GitBackend)
        inspector = StatusInspector(mock_backend)
        handle = locate(temp_git_repo)

        assert inspector.status_of(handle, temp_git_repo / ".git") is PathStatus.IS_METADATA_DIRECTORY
        mock_backend.short_status.assert_not_called()

    def test_not_a_repository(self, temp_dir: Path):
        """No handle means no repository."""
        inspector = StatusInspector(MagicMock(spec=GitBackend))
        assert inspector.status_of(None, temp_dir) is PathStatus.NOT_A_REPOSITORY

    @pytest.mark.parametrize(
        "error",
        [
            GitCommandError(["status"], 128, "fatal: bad"),
            CommandSpawnError("git status", "no shell"),
        ],
    )
    def test_query_failure_is_error(self, error, temp_git_repo: Path):
        """Failures are distinct from untracked."""
        mock_backend = MagicMock(spec=GitBackend)
        mock_backend.short_status.side_effect = error
        inspector = StatusInspector(mock_backend)

        status = inspector.status_of(locate(temp_git_repo), temp_git_repo / "README.md")

        assert status is PathStatus.ERROR
        assert status.label == "Error"
