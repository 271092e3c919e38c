"""Pytest configuration and fixtures for Git File Browser tests."""

import json
import shutil
import subprocess
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from error_handler import get_error_handler
from git_ops import CredentialStore, GitWorkspace, create_backend
from metrics import reset_metrics


def run_git(cwd: Path, *args: str) -> str:
    """Run git for test setup and return its stdout."""
    proc = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return proc.stdout


def init_repo(path: Path) -> Path:
    """Initialize a repository on branch `main` with a test identity."""
    run_git(path, "init")
    run_git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(path, "config", "user.name", "Test User")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep the metrics collector and error callback from leaking between tests."""
    reset_metrics()
    get_error_handler().set_notification_callback(None)
    yield
    reset_metrics()
    get_error_handler().set_notification_callback(None)


@pytest.fixture
def git():
    """Callable running git in a directory: git(cwd, *args) -> stdout."""
    return run_git


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_git_repo(temp_dir: Path) -> Path:
    """Create a temporary git repository with one commit on `main`."""
    init_repo(temp_dir)
    readme_file = temp_dir / "README.md"
    readme_file.write_text("# Test Repository\n")
    run_git(temp_dir, "add", "README.md")
    run_git(temp_dir, "commit", "-m", "Initial commit")
    return temp_dir


@pytest.fixture
def empty_git_repo(temp_dir: Path) -> Path:
    """Create a temporary git repository without any commit."""
    return init_repo(temp_dir)


@pytest.fixture(params=["cli", "library"])
def backend(request):
    """Each VCS backend in turn."""
    return create_backend(request.param)


@pytest.fixture
def workspace(backend, tmp_path: Path) -> GitWorkspace:
    """Workspace whose credentials file lives outside any test repository."""
    return GitWorkspace(backend, credential_store=CredentialStore(tmp_path / "user_information.txt"))


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration for testing."""
    return {
        "vcs_backend": "library",
        "credentials_file": "creds/user_information.txt",
        "history_limit": 50,
        "recent_dirs": ["/tmp/a"],
        "theme": "light",
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a temporary config file for testing."""
    config_path = temp_dir / "settings.json"
    config_path.write_text(json.dumps(sample_config, indent=2))
    return config_path
