"""Logging setup for Git File Browser.

Everything goes through the root logger: the console shows INFO and above,
`git_file_browser.log` keeps DEBUG (including each git command line and its
duration) and `errors.log` collects ERROR and above.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path

from config import _config_dir

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAIN_LOG = "git_file_browser.log"
ERROR_LOG = "errors.log"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; `fields` from log_performance are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter,
                      max_bytes: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
    json_format: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backups: int = 3,
    log_dir: Path | None = None,
) -> logging.Logger:
    """Replace the root logger's handlers according to the settings.

    `level` is a level name from the settings file; unknown names mean INFO.
    """
    root = logging.getLogger()
    level_no = logging.getLevelName(str(level).upper())
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT, DATE_FORMAT)

    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_to_file:
        log_dir = log_dir or _config_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(log_dir / MAIN_LOG, logging.DEBUG, formatter, max_bytes, backups))
        root.addHandler(_rotating_handler(log_dir / ERROR_LOG, logging.ERROR, formatter, max_bytes, backups))

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_performance(logger: logging.Logger, operation: str, duration_ms: float, **fields):
    """DEBUG line with the duration of a workspace operation."""
    fields = {"operation": operation, "duration_ms": round(duration_ms, 2), **fields}
    logger.debug(f"{operation} took {duration_ms:.1f}ms", extra={"fields": fields})


def configure_qt_logging():
    """Send Qt's own warnings to the `qt` logger."""
    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }
    qt_logger = get_logger("qt")

    def handler(msg_type, _context, message):
        qt_logger.log(levels.get(msg_type, logging.WARNING), message)

    qInstallMessageHandler(handler)
