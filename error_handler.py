"""Central reporting of failures raised by git, the filesystem and settings.

Services never show dialogs themselves. They hand the exception to the
shared `ErrorHandler`, which logs it, counts it in the session metrics and
passes an `ErrorInfo` to whatever notification callback the window has
registered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from logging_config import get_logger
from metrics import record_error

logger = get_logger(__name__)


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    GIT_COMMAND = "git_command"
    AUTHENTICATION = "authentication"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    STARTUP = "startup"
    UI = "ui"


@dataclass
class ErrorInfo:
    """What the window needs to tell the user about one failure."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    context: dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None


# Checked in order against git's lower-cased diagnostics.
GIT_HINTS = (
    ("not a git repository", "The selected directory is not a Git repository."),
    ("already exists", "A branch or file with that name already exists."),
    ("authentication failed", "The remote rejected the credentials."),
    ("could not resolve host", "The remote host could not be reached."),
    ("permission denied", "Git was denied access to a file."),
    ("local changes", "Local changes would be overwritten. Commit or restore them first."),
    ("not fully merged", "The branch has commits that are not merged yet."),
)

FILE_SYSTEM_HINTS = {
    "PermissionError": "Permission denied for {path}.",
    "FileNotFoundError": "{path} does not exist.",
    "FileExistsError": "{path} already exists.",
    "IsADirectoryError": "{path} is a directory.",
    "NotADirectoryError": "{path} is not a directory.",
}


def describe_git_failure(exception: BaseException, operation: str) -> str:
    """Short user-facing explanation of a failed git operation."""
    text = str(exception).lower()
    for needle, hint in GIT_HINTS:
        if needle in text:
            return hint
    return f"git {operation} failed."


class ErrorHandler:
    """Logs failures, counts them and forwards them to the UI."""

    def __init__(self):
        self.notification_callback: Optional[Callable[[ErrorInfo], None]] = None

    def set_notification_callback(self, callback: Optional[Callable[[ErrorInfo], None]]):
        self.notification_callback = callback

    def handle_error(
        self,
        exception: BaseException,
        category: ErrorCategory = ErrorCategory.UI,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        user_message: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> ErrorInfo:
        info = ErrorInfo(
            category=category,
            severity=severity,
            message=str(exception),
            user_message=user_message or str(exception),
            context=context or {},
            exception=exception,
        )

        line = f"[{category.value}] {info.message}"
        if info.context:
            line += f" {info.context}"
        if severity is ErrorSeverity.WARNING:
            logger.warning(line)
        else:
            level = logging.CRITICAL if severity is ErrorSeverity.CRITICAL else logging.ERROR
            logger.log(level, line, exc_info=exception)

        record_error(
            f"{category.value}.{type(exception).__name__}",
            info.message,
            {"severity": severity.value, **info.context},
        )

        if self.notification_callback is not None:
            try:
                self.notification_callback(info)
            except Exception as e:
                logger.error(f"Error notification callback failed: {e}")
        return info

    def handle_git_error(
        self,
        exception: BaseException,
        operation: str,
        repo_path: Optional[Path] = None,
        user_message: Optional[str] = None,
    ) -> ErrorInfo:
        # imported here: git_ops imports this module
        from git_ops.exceptions import AuthenticationError

        category = ErrorCategory.GIT_COMMAND
        if isinstance(exception, AuthenticationError):
            category = ErrorCategory.AUTHENTICATION
        context = {"operation": operation}
        if repo_path is not None:
            context["repo_path"] = str(repo_path)
        return self.handle_error(
            exception,
            category,
            ErrorSeverity.ERROR,
            user_message or describe_git_failure(exception, operation),
            context,
        )

    def handle_file_system_error(
        self,
        exception: OSError,
        operation: str,
        file_path: Optional[Path] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> ErrorInfo:
        shown = str(file_path) if file_path else "the selected path"
        template = FILE_SYSTEM_HINTS.get(type(exception).__name__, "Could not {operation} {path}.")
        return self.handle_error(
            exception,
            ErrorCategory.FILE_SYSTEM,
            severity,
            template.format(path=shown, operation=operation.replace("_", " ")),
            {"operation": operation, "file_path": shown},
        )

    def handle_configuration_error(self, exception: BaseException, config_key: str) -> ErrorInfo:
        return self.handle_error(
            exception,
            ErrorCategory.CONFIGURATION,
            ErrorSeverity.WARNING,
            f"Ignoring invalid setting '{config_key}': {exception}",
            {"config_key": config_key},
        )


_error_handler = ErrorHandler()


def get_error_handler() -> ErrorHandler:
    return _error_handler


def handle_error(
    exception: BaseException,
    category: ErrorCategory = ErrorCategory.UI,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    user_message: Optional[str] = None,
) -> ErrorInfo:
    return _error_handler.handle_error(exception, category, severity, user_message)


def handle_git_error(
    exception: BaseException,
    operation: str,
    repo_path: Optional[Path] = None,
    user_message: Optional[str] = None,
) -> ErrorInfo:
    return _error_handler.handle_git_error(exception, operation, repo_path, user_message)


def handle_file_system_error(
    exception: OSError,
    operation: str,
    file_path: Optional[Path] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> ErrorInfo:
    return _error_handler.handle_file_system_error(exception, operation, file_path, severity)


def handle_configuration_error(exception: BaseException, config_key: str) -> ErrorInfo:
    return _error_handler.handle_configuration_error(exception, config_key)
