"""Tests for centralized error handling."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from error_handler import (
    ErrorCategory,
    ErrorHandler,
    ErrorSeverity,
    describe_git_failure,
    get_error_handler,
    handle_configuration_error,
    handle_file_system_error,
    handle_git_error,
)
from git_ops.exceptions import AuthenticationError, GitCommandError
from metrics import get_metrics_collector, initialize_metrics


class TestGitErrors:
    """Tests for git failure reporting."""

    @pytest.mark.parametrize(
        "stderr,expected",
        [
            ("fatal: not a git repository", "not a Git repository"),
            ("fatal: a branch named 'x' already exists", "already exists"),
            ("Could not resolve host: example.com", "could not be reached"),
            ("error: Your local changes to the following files would be overwritten", "Local changes"),
            ("error: The branch 'x' is not fully merged.", "not merged"),
        ],
    )
    def test_known_diagnostics(self, stderr, expected):
        """Known git diagnostics get a friendly explanation."""
        assert expected in describe_git_failure(GitCommandError(["x"], 128, stderr), "x")

    def test_unknown_diagnostics(self):
        assert describe_git_failure(GitCommandError(["gc"], 1, "weird"), "gc") == "git gc failed."

    def test_authentication_category(self):
        """Rejected credentials are reported as their own category."""
        info = ErrorHandler().handle_git_error(AuthenticationError(["clone"], 128, "Authentication failed"), "clone")

        assert info.category is ErrorCategory.AUTHENTICATION
        assert info.user_message == "The remote rejected the credentials."

    def test_explicit_user_message(self, tmp_path: Path):
        """A caller-provided message is kept verbatim."""
        info = handle_git_error(GitCommandError(["commit"], 1), "commit", tmp_path, user_message="Commit failed.")

        assert info.user_message == "Commit failed."
        assert info.category is ErrorCategory.GIT_COMMAND
        assert info.context == {"operation": "commit", "repo_path": str(tmp_path)}


class TestOtherErrors:
    """Tests for filesystem and settings failures."""

    def test_file_system_message(self, tmp_path: Path):
        target = tmp_path / "notes.txt"
        info = handle_file_system_error(FileExistsError(17, "File exists"), "create_file", target)

        assert info.user_message == f"{target} already exists."
        assert info.category is ErrorCategory.FILE_SYSTEM

    def test_file_system_fallback_message(self):
        info = handle_file_system_error(OSError(5, "I/O error"), "read_credentials", severity=ErrorSeverity.WARNING)
        assert info.user_message == "Could not read credentials the selected path."
        assert info.severity is ErrorSeverity.WARNING

    def test_configuration_is_a_warning(self):
        info = handle_configuration_error(ValueError("Unknown vcs_backend 'hg'"), "vcs_backend")

        assert info.severity is ErrorSeverity.WARNING
        assert "vcs_backend" in info.user_message


class TestNotifications:
    """Tests for the notification callback."""

    def test_callback_receives_error(self):
        """Registered callbacks see every handled error."""
        callback = MagicMock()
        get_error_handler().set_notification_callback(callback)

        info = handle_git_error(GitCommandError(["merge"], 1), "merge")

        callback.assert_called_once_with(info)

    def test_failing_callback_is_contained(self):
        """A broken callback does not propagate."""
        handler = ErrorHandler()
        handler.set_notification_callback(MagicMock(side_effect=RuntimeError("ui gone")))

        info = handler.handle_error(ValueError("boom"), ErrorCategory.UI)

        assert info.message == "boom"


def test_errors_are_counted(tmp_path: Path):
    """Each handled error increments the session error count."""
    initialize_metrics(tmp_path, enable_telemetry=False)

    handle_git_error(GitCommandError(["push"], 1), "push")
    handle_configuration_error(ValueError("bad"), "theme")

    assert get_metrics_collector().current_session.errors_count == 2
