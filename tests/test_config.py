"""Tests for configuration management functionality."""

import json
from pathlib import Path

import pytest

from config import (
    DEFAULT_CONFIG,
    RECENTS_MAX,
    get_credentials_path,
    get_history_limit,
    get_vcs_backend,
    load_config,
    push_recent_dir,
    save_config,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_existing_file(self, config_file: Path, sample_config: dict):
        """Stored keys win; missing keys are filled from defaults."""
        config = load_config(config_file)

        for key, value in sample_config.items():
            assert config[key] == value
        assert config["git_executable"] == DEFAULT_CONFIG["git_executable"]
        assert config["auto_reopen_last"] is True

    def test_load_config_nonexistent_file(self, temp_dir: Path):
        """A missing file yields the defaults."""
        config = load_config(temp_dir / "nonexistent.json")
        assert config == DEFAULT_CONFIG

    def test_load_config_invalid_json(self, temp_dir: Path):
        """Invalid JSON yields the defaults."""
        invalid_config = temp_dir / "invalid.json"
        invalid_config.write_text("{ invalid json }")

        assert load_config(invalid_config) == DEFAULT_CONFIG

    def test_load_config_not_an_object(self, temp_dir: Path):
        """A JSON document that is not an object yields the defaults."""
        path = temp_dir / "list.json"
        path.write_text("[1, 2, 3]")

        assert load_config(path) == DEFAULT_CONFIG

    def test_defaults_are_not_shared(self, temp_dir: Path):
        """Mutating a loaded config never touches DEFAULT_CONFIG."""
        config = load_config(temp_dir / "nonexistent.json")
        config["recent_dirs"].append("/x")

        assert DEFAULT_CONFIG["recent_dirs"] == []


class TestSaveConfig:
    """Tests for save_config function."""

    def test_save_config_success(self, temp_dir: Path, sample_config: dict):
        """Saved configuration can be read back."""
        config_file = temp_dir / "test_config.json"

        save_config(sample_config, config_file)

        assert json.loads(config_file.read_text()) == sample_config
        assert not (temp_dir / ".settings.tmp").exists()

    def test_save_config_creates_directory(self, temp_dir: Path, sample_config: dict):
        """Parent directories are created if needed."""
        nested_path = temp_dir / "nested" / "settings.json"

        save_config(sample_config, nested_path)

        assert json.loads(nested_path.read_text()) == sample_config


class TestRecentDirs:
    """Tests for recent directory management."""

    def test_push_recent_dir_new(self, sample_config: dict):
        """A new directory goes to the top and becomes last_dir."""
        push_recent_dir(sample_config, Path("/test/dir"))

        assert sample_config["recent_dirs"][0] == "/test/dir"
        assert sample_config["last_dir"] == "/test/dir"

    def test_push_recent_dir_existing(self, sample_config: dict):
        """Revisiting a directory moves it to the top without duplicating it."""
        push_recent_dir(sample_config, Path("/test/one"))
        push_recent_dir(sample_config, Path("/test/two"))
        push_recent_dir(sample_config, Path("/test/one"))

        assert sample_config["recent_dirs"][:2] == ["/test/one", "/test/two"]
        assert sample_config["recent_dirs"].count("/test/one") == 1

    def test_push_recent_dir_limit(self):
        """The list is capped."""
        cfg = {}
        for i in range(RECENTS_MAX + 3):
            push_recent_dir(cfg, Path(f"/test/dir{i}"))

        assert len(cfg["recent_dirs"]) == RECENTS_MAX
        assert cfg["recent_dirs"][0] == f"/test/dir{RECENTS_MAX + 2}"


class TestAccessors:
    """Tests for typed config accessors."""

    @pytest.mark.parametrize("value,expected", [("cli", "cli"), ("library", "library"), (" CLI ", "cli")])
    def test_get_vcs_backend(self, value, expected):
        """Backend names are normalized."""
        assert get_vcs_backend({"vcs_backend": value}) == expected

    def test_get_vcs_backend_default(self):
        """The CLI backend is the default."""
        assert get_vcs_backend({}) == "cli"

    def test_get_vcs_backend_invalid(self):
        """Unknown backends are rejected."""
        with pytest.raises(ValueError):
            get_vcs_backend({"vcs_backend": "mercurial"})

    def test_get_credentials_path_relative(self, monkeypatch, temp_dir: Path):
        """Relative paths resolve against the working directory."""
        monkeypatch.chdir(temp_dir)
        assert get_credentials_path({"credentials_file": "creds.txt"}) == Path.cwd() / "creds.txt"
        assert get_credentials_path({}) == Path.cwd() / "user_information.txt"

    def test_get_credentials_path_absolute(self, temp_dir: Path):
        """Absolute paths are kept."""
        target = temp_dir / "creds.txt"
        assert get_credentials_path({"credentials_file": str(target)}) == target

    @pytest.mark.parametrize("value,expected", [(50, 50), ("25", 25), (0, 200), (-3, 200), ("many", 200), (None, 200)])
    def test_get_history_limit(self, value, expected):
        """Invalid limits fall back to the default."""
        assert get_history_limit({"history_limit": value}) == expected
