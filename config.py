"""Configuration management for Git File Browser."""

import os
import sys
import json
from pathlib import Path

APP_NAME = "GitFileBrowser"
RECENTS_MAX = 15
VCS_BACKENDS = ("cli", "library")

DEFAULT_CONFIG = {
    "vcs_backend": "cli",  # "cli" | "library"
    "credentials_file": "user_information.txt",  # relative to the process working directory
    "git_executable": "git",
    "shell": "/bin/sh",
    "history_limit": 200,  # int - max commits shown in the history dialog
    "show_hidden_files": False,  # bool
    "recent_dirs": [],  # list[str]
    "last_dir": None,  # str | None
    "auto_reopen_last": True,  # bool
    "window_geometry": None,  # str | None
    "theme": "dark",  # "dark" | "light"
    "log_level": "INFO",
    "enable_telemetry": False,
}


def _config_dir() -> Path:
    """Get the platform-specific configuration directory."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(base) / APP_NAME


def _config_path() -> Path:
    """Get the configuration file path."""
    return _config_dir() / "settings.json"


def load_config(path: Path | None = None) -> dict:
    """Load configuration from file, falling back to defaults."""
    p = path or _config_path()
    try:
        with p.open("r", encoding="utf-8") as f:
            cfg = json.load(f)
        if not isinstance(cfg, dict):
            raise ValueError("settings file must contain a JSON object")
        # Fill any missing keys with defaults
        for k, v in DEFAULT_CONFIG.items():
            cfg.setdefault(k, v)
        return cfg
    except (OSError, ValueError):
        return json.loads(json.dumps(DEFAULT_CONFIG))


def save_config(cfg: dict, path: Path | None = None):
    """Save configuration to file."""
    target = path or _config_path()
    d = target.parent
    d.mkdir(parents=True, exist_ok=True)
    tmp = d / ".settings.tmp"
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
    tmp.replace(target)


def push_recent_dir(cfg: dict, directory: Path):
    """Add a directory to the recent directories list."""
    s = str(directory)
    recents = [r for r in cfg.get("recent_dirs", []) if r != s]
    recents.insert(0, s)
    if len(recents) > RECENTS_MAX:
        recents = recents[:RECENTS_MAX]
    cfg["recent_dirs"] = recents
    cfg["last_dir"] = s


def get_vcs_backend(cfg: dict) -> str:
    """Get the configured VCS backend name."""
    name = str(cfg.get("vcs_backend", DEFAULT_CONFIG["vcs_backend"])).strip().lower()
    if name not in VCS_BACKENDS:
        raise ValueError(f"Unknown vcs_backend '{name}', expected one of {', '.join(VCS_BACKENDS)}")
    return name


def get_credentials_path(cfg: dict) -> Path:
    """Get the credentials file location.

    Relative paths resolve against the process working directory.
    """
    raw = cfg.get("credentials_file") or DEFAULT_CONFIG["credentials_file"]
    p = Path(raw).expanduser()
    return p if p.is_absolute() else Path.cwd() / p


def get_history_limit(cfg: dict) -> int:
    """Get the maximum number of commits to load for history views."""
    try:
        limit = int(cfg.get("history_limit", DEFAULT_CONFIG["history_limit"]))
    except (TypeError, ValueError):
        return DEFAULT_CONFIG["history_limit"]
    return limit if limit > 0 else DEFAULT_CONFIG["history_limit"]
