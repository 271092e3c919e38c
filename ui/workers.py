"""Background workers for the file browser."""

from pathlib import Path

from PySide6.QtCore import QThread, Signal

from fs_utils import list_directory
from logging_config import get_logger
from metrics import time_operation

logger = get_logger(__name__)

BATCH_SIZE = 200


class DirectoryLoader(QThread):
    """Lists a directory off the GUI thread and emits entries in batches."""

    batch_ready = Signal(str, list)  # directory, list[FileEntry]
    loading_finished = Signal(str)
    loading_failed = Signal(str, str)  # directory, error message

    def __init__(self, directory: Path, show_hidden: bool = False, parent=None):
        super().__init__(parent)
        self.directory = Path(directory)
        self.show_hidden = show_hidden
        self.running = True

    def run(self):
        key = str(self.directory)
        try:
            with time_operation("list_directory"):
                entries = list_directory(self.directory, self.show_hidden)
        except OSError as e:
            logger.warning(f"Could not list {self.directory}: {e}")
            self.loading_failed.emit(key, str(e))
            return

        for start in range(0, len(entries), BATCH_SIZE):
            if not self.running:
                return
            self.batch_ready.emit(key, entries[start:start + BATCH_SIZE])
        self.loading_finished.emit(key)

    def stop(self):
        """Stop emitting further batches."""
        self.running = False
