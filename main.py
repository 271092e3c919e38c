#!/usr/bin/env python3
"""Git File Browser entry point."""

import sys
import time
from pathlib import Path

from config import DEFAULT_CONFIG, _config_dir, get_vcs_backend, load_config
from error_handler import ErrorCategory, ErrorSeverity, handle_configuration_error, handle_error
from logging_config import configure_qt_logging, get_logger, setup_logging
from metrics import finalize_metrics, initialize_metrics, record_startup_time

logger = get_logger(__name__)


def main() -> int:
    startup_start_time = time.time()
    cfg = load_config()
    setup_logging(level=str(cfg.get("log_level", "INFO")), log_to_file=True, log_to_console=True)

    try:
        get_vcs_backend(cfg)
    except ValueError as e:
        handle_configuration_error(e, "vcs_backend")
        cfg["vcs_backend"] = DEFAULT_CONFIG["vcs_backend"]

    logger.info("Starting Git File Browser")
    initialize_metrics(_config_dir(), enable_telemetry=bool(cfg.get("enable_telemetry", False)))

    try:
        from PySide6.QtGui import QIcon
        from PySide6.QtWidgets import QApplication

        from ui.main_window import App

        app = QApplication(sys.argv)
        configure_qt_logging()
        app.setApplicationName("Git File Browser")
        app.setApplicationVersion("1.0")

        icon_path = Path(__file__).parent / "assets" / "icon.png"
        if icon_path.exists():
            app.setWindowIcon(QIcon(str(icon_path)))

        window = App(cfg)
        window.show()

        startup_time_ms = (time.time() - startup_start_time) * 1000
        record_startup_time(startup_time_ms)
        logger.info(f"Application startup completed in {startup_time_ms:.1f}ms")

        exit_code = app.exec()
    except Exception as e:
        handle_error(e, ErrorCategory.STARTUP, ErrorSeverity.CRITICAL)
        finalize_metrics()
        return 1

    finalize_metrics()
    logger.info(f"Application exiting with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
