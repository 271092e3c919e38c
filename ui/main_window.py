"""Main window and application logic."""

from pathlib import Path

from PySide6.QtCore import QDir, Qt, QUrl
from PySide6.QtGui import QAction, QColor, QDesktopServices, QIcon, QKeySequence
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QFileDialog,
    QFileSystemModel,
    QHBoxLayout,
    QHeaderView,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QStatusBar,
    QTableWidget,
    QTableWidgetItem,
    QToolBar,
    QTreeView,
    QVBoxLayout,
    QWidget,
)

from config import load_config, push_recent_dir, save_config
from error_handler import ErrorInfo, get_error_handler, handle_file_system_error
from fs_utils import create_entry, delete_entry, rename_entry
from git_ops import GitWorkspace
from logging_config import get_logger
from models import PathStatus

from .dialogs import (
    BranchPickerDialog,
    CloneDialog,
    CommitDialog,
    HistoryDialog,
    ask_credentials,
    show_result,
)
from .workers import DirectoryLoader

logger = get_logger(__name__)

STATUS_COLORS = {
    PathStatus.UNTRACKED: "#e5c07b",
    PathStatus.MODIFIED: "#e06c75",
    PathStatus.STAGED: "#98c379",
    PathStatus.STAGED_AND_MODIFIED: "#d19a66",
    PathStatus.ERROR: "#ff5555",
}

COL_NAME, COL_SIZE, COL_MODIFIED, COL_STATUS = range(4)


class App(QMainWindow):
    """Main application window."""

    def __init__(self, cfg: dict | None = None):
        super().__init__()
        self.setWindowTitle("Git File Browser")
        self.resize(1100, 650)
        self.setMinimumSize(880, 520)

        icon_path = Path(__file__).parent.parent / "assets" / "icon.png"
        if icon_path.exists():
            self.setWindowIcon(QIcon(str(icon_path)))

        self.cfg = cfg if cfg is not None else load_config()
        self.workspace = GitWorkspace.from_config(self.cfg, credential_prompt=lambda: ask_credentials(self))

        self.current_dir: Path | None = None
        self._loader: DirectoryLoader | None = None

        self._setup_ui()
        self._setup_menus()
        self._apply_theme(self.cfg.get("theme", "dark"))
        get_error_handler().set_notification_callback(self._on_error)

        self._restore_settings()

    def _setup_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(6)

        top_layout = QHBoxLayout()
        top_layout.addWidget(QLabel("Directory:"))

        self.dir_combo = QComboBox()
        self.dir_combo.setEditable(True)
        self.dir_combo.setMinimumWidth(400)
        self.dir_combo.addItems(self.cfg.get("recent_dirs", []))
        self.dir_combo.setToolTip("Enter or select a directory. Recent directories are shown in the dropdown.")
        top_layout.addWidget(self.dir_combo, 1)

        pick_btn = QPushButton("Pick…")
        pick_btn.clicked.connect(self.choose_dir)
        top_layout.addWidget(pick_btn)

        open_btn = QPushButton("Open")
        open_btn.clicked.connect(self.open_dir_from_entry)
        top_layout.addWidget(open_btn)

        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self.refresh)
        refresh_btn.setToolTip("Reload the directory and git status (F5)")
        top_layout.addWidget(refresh_btn)

        self.hidden_cb = QCheckBox("Show hidden")
        self.hidden_cb.setChecked(bool(self.cfg.get("show_hidden_files", False)))
        self.hidden_cb.toggled.connect(self._toggle_hidden)
        top_layout.addWidget(self.hidden_cb)
        main_layout.addLayout(top_layout)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self.dir_model = QFileSystemModel(self)
        self.dir_model.setRootPath(QDir.rootPath())
        self.dir_model.setFilter(QDir.Filter.AllDirs | QDir.Filter.NoDotAndDotDot)
        self.tree = QTreeView()
        self.tree.setModel(self.dir_model)
        for column in range(1, self.dir_model.columnCount()):
            self.tree.hideColumn(column)
        self.tree.setHeaderHidden(True)
        self.tree.clicked.connect(lambda index: self.open_dir(Path(self.dir_model.filePath(index))))
        splitter.addWidget(self.tree)

        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["Name", "Size", "Modified", "Git"])
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.verticalHeader().setVisible(False)
        self.table.horizontalHeader().setSectionResizeMode(COL_NAME, QHeaderView.ResizeMode.Stretch)
        self.table.itemSelectionChanged.connect(self._update_branch_label)
        self.table.cellDoubleClicked.connect(self._on_row_activated)
        splitter.addWidget(self.table)

        splitter.setSizes([300, 800])
        main_layout.addWidget(splitter, 1)

        self._setup_toolbar()

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.branch_label = QLabel("")
        self.branch_label.setStyleSheet("color: #9aa1b2; padding: 6px 12px;")
        self.status_bar.addPermanentWidget(self.branch_label)

    def _setup_toolbar(self):
        toolbar = QToolBar("Actions")
        toolbar.setMovable(False)
        self.addToolBar(Qt.ToolBarArea.TopToolBarArea, toolbar)

        actions = [
            ("Open", self.open_selected, "Open the selected file with its default application"),
            ("New file", self.new_file, "Create an empty file in the current directory"),
            ("New folder", self.new_folder, "Create a folder in the current directory"),
            ("Rename", self.rename_selected, "Rename the selected file"),
            ("Delete", self.delete_selected, "Delete the selected file from the disk"),
            None,
            ("Init", self.init_repository, "Create a repository in the current directory"),
            ("Clone", self.clone_repository, "Clone a remote repository into an empty directory"),
            None,
            ("Add", self.stage_selected, "git add the selected file"),
            ("Restore", self.restore_selected, "Discard worktree changes of the selected file"),
            ("Unstage", self.unstage_selected, "git restore --staged the selected file"),
            ("Remove", self.remove_selected, "git rm the selected file"),
            ("Untrack", self.untrack_selected, "git rm --cached the selected file"),
            ("Move", self.move_selected, "git mv the selected file"),
            None,
            ("Commit", self.commit, "Commit the staged files"),
            ("History", self.show_history, "Show the commit history and graph"),
            None,
            ("New branch", self.create_branch, "Create a branch at HEAD"),
            ("Delete branch", self.delete_branch, "Delete a local branch"),
            ("Rename branch", self.rename_branch, "Rename a local branch"),
            ("Checkout", self.checkout_branch, "Switch to another branch"),
            ("Merge", self.merge_branch, "Merge a branch into the current one"),
        ]
        for entry in actions:
            if entry is None:
                toolbar.addSeparator()
                continue
            text, slot, tip = entry
            action = QAction(text, self)
            action.setToolTip(tip)
            action.triggered.connect(slot)
            toolbar.addAction(action)

    def _setup_menus(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")
        open_action = QAction("Open directory…", self)
        open_action.setShortcut(QKeySequence("Ctrl+O"))
        open_action.triggered.connect(self.choose_dir)
        file_menu.addAction(open_action)

        file_menu.addSeparator()
        self.recent_menu = file_menu.addMenu("Recent Directories")
        self._rebuild_recent_menu()
        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        view_menu = menubar.addMenu("View")
        refresh_action = QAction("Refresh", self)
        refresh_action.setShortcut(QKeySequence("F5"))
        refresh_action.triggered.connect(self.refresh)
        view_menu.addAction(refresh_action)
        view_menu.addSeparator()
        dark_action = QAction("Dark theme", self)
        dark_action.triggered.connect(lambda: self._switch_theme("dark"))
        view_menu.addAction(dark_action)
        light_action = QAction("Light theme", self)
        light_action.triggered.connect(lambda: self._switch_theme("light"))
        view_menu.addAction(light_action)

        help_menu = menubar.addMenu("Help")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _rebuild_recent_menu(self):
        self.recent_menu.clear()
        recents = self.cfg.get("recent_dirs", [])
        if not recents:
            empty_action = QAction("(Empty)", self)
            empty_action.setEnabled(False)
            self.recent_menu.addAction(empty_action)
            return

        for path in recents:
            action = QAction(path, self)
            action.triggered.connect(lambda checked, p=path: self.open_dir(Path(p)))
            self.recent_menu.addAction(action)

        self.recent_menu.addSeparator()
        clear_action = QAction("Clear history", self)
        clear_action.triggered.connect(self._clear_recents)
        self.recent_menu.addAction(clear_action)

    def _apply_theme(self, mode: str = "dark"):
        if mode == "dark":
            bg, panel, surface, text, subtext, accent = "#0f1115", "#151823", "#1a1f2e", "#e6e7ee", "#9aa1b2", "#7c7fff"
        else:
            bg, panel, surface, text, subtext, accent = "#f5f6fa", "#ffffff", "#e9ebf2", "#1d2030", "#5c6370", "#4b4fd6"
        self.setStyleSheet(f"""
            QMainWindow, QWidget {{ background-color: {bg}; color: {text}; }}
            QLabel {{ background-color: transparent; color: {text}; }}
            QPushButton {{
                background-color: {surface}; color: {text};
                border: 1px solid #404757; border-radius: 4px; padding: 6px 12px;
            }}
            QComboBox, QTreeView, QTableWidget {{
                background-color: {panel}; color: {text}; border: 1px solid #404757;
            }}
            QTableWidget::item:selected, QTreeView::item:selected {{ background-color: {accent}; color: #ffffff; }}
            QHeaderView::section {{ background-color: {surface}; color: {subtext}; border: none; padding: 4px; }}
            QToolBar {{ background-color: {surface}; border: none; spacing: 4px; }}
            QStatusBar {{ background-color: {surface}; color: {subtext}; border-top: 1px solid #404757; }}
            QMenu::item:selected {{ background-color: {accent}; color: #ffffff; }}
        """)

    def _switch_theme(self, mode: str):
        self.cfg["theme"] = mode
        save_config(self.cfg)
        self._apply_theme(mode)

    def _show_about(self):
        QMessageBox.about(
            self,
            "About",
            "Git File Browser\n\nBrowse directories and run common git operations on the selected file.",
        )

    def _restore_settings(self):
        geom = self.cfg.get("window_geometry")
        if geom and "x" in geom and "+" in geom:
            try:
                size_part, pos_part = geom.split("+", 1)
                width, height = map(int, size_part.split("x"))
                x, y = map(int, pos_part.split("+"))
                self.resize(width, height)
                self.move(x, y)
            except ValueError:
                logger.debug(f"Ignoring malformed window geometry {geom!r}")

        last = self.cfg.get("last_dir")
        if self.cfg.get("auto_reopen_last") and last and Path(last).is_dir():
            self.open_dir(Path(last))
        else:
            self.open_dir(Path.home())

    # Navigation

    def choose_dir(self):
        folder = QFileDialog.getExistingDirectory(self, "Choose a directory", str(self.current_dir or Path.home()))
        if folder:
            self.open_dir(Path(folder))

    def open_dir_from_entry(self):
        val = self.dir_combo.currentText().strip()
        if val:
            self.open_dir(Path(val).expanduser())

    def open_dir(self, directory: Path):
        if not directory.is_dir():
            QMessageBox.critical(self, "Not a directory", f"{directory} is not a directory.")
            return
        self.current_dir = directory
        self.dir_combo.setCurrentText(str(directory))
        index = self.dir_model.index(str(directory))
        self.tree.setCurrentIndex(index)
        self.tree.scrollTo(index)

        push_recent_dir(self.cfg, directory)
        save_config(self.cfg)
        self._rebuild_recent_menu()
        self.refresh()

    def refresh(self):
        if self.current_dir is None:
            return
        if self._loader is not None:
            self._loader.stop()
            self._loader.wait()

        self.table.setRowCount(0)
        self._loader = DirectoryLoader(self.current_dir, self.hidden_cb.isChecked(), self)
        self._loader.batch_ready.connect(self._on_batch)
        self._loader.loading_failed.connect(self._on_load_failed)
        self._loader.loading_finished.connect(lambda _key: self._update_branch_label())
        self._loader.start()

    def _on_batch(self, directory: str, entries: list):
        if directory != str(self.current_dir):
            return
        for entry in entries:
            row = self.table.rowCount()
            self.table.insertRow(row)
            name_item = QTableWidgetItem(entry.name + ("/" if entry.is_dir else ""))
            name_item.setData(Qt.ItemDataRole.UserRole, str(entry.path))
            self.table.setItem(row, COL_NAME, name_item)
            self.table.setItem(row, COL_SIZE, QTableWidgetItem(entry.display_size()))
            self.table.setItem(row, COL_MODIFIED, QTableWidgetItem(entry.modified_datetime.strftime("%Y-%m-%d %H:%M")))
            self._set_status_cell(row, entry.path)

    def _set_status_cell(self, row: int, path: Path):
        status = self.workspace.status_of(path)
        item = QTableWidgetItem(status.label)
        color = STATUS_COLORS.get(status)
        if color:
            item.setForeground(QColor(color))
        self.table.setItem(row, COL_STATUS, item)

    def _refresh_statuses(self):
        for row in range(self.table.rowCount()):
            path = self._row_path(row)
            if path is not None and path.exists():
                self._set_status_cell(row, path)
        self._update_branch_label()

    def _on_load_failed(self, directory: str, message: str):
        QMessageBox.critical(self, "Error listing directory", f"{directory}\n{message}")

    def _on_row_activated(self, row: int, _column: int):
        self.table.selectRow(row)
        self.open_selected()

    def _toggle_hidden(self, checked: bool):
        self.cfg["show_hidden_files"] = checked
        save_config(self.cfg)
        self.refresh()

    def _clear_recents(self):
        self.cfg["recent_dirs"] = []
        save_config(self.cfg)
        self._rebuild_recent_menu()

    def _row_path(self, row: int) -> Path | None:
        item = self.table.item(row, COL_NAME)
        if item is None:
            return None
        return Path(item.data(Qt.ItemDataRole.UserRole))

    def selected_path(self) -> Path | None:
        """Selected file, or None (reported as "No file selected." by the engine)."""
        rows = self.table.selectionModel().selectedRows()
        if not rows:
            return None
        return self._row_path(rows[0].row())

    def context_path(self) -> Path | None:
        """Selected file, falling back to the directory being browsed."""
        return self.selected_path() or self.current_dir

    def _update_branch_label(self):
        path = self.context_path()
        branch = self.workspace.current_branch(path) if path else ""
        self.branch_label.setText(f"Branch: {branch}" if branch else "Not a git repository")

    def _on_error(self, info: ErrorInfo):
        self.status_bar.showMessage(info.user_message, 8000)

    def _report(self, result):
        show_result(self, result)
        self._refresh_statuses()

    # File actions

    def _file_action_failed(self, title: str, message: str):
        QMessageBox.warning(self, title, message)

    def open_selected(self):
        path = self.selected_path()
        if path is None:
            QMessageBox.information(self, "Open", "No file selected to open.")
        elif path.is_dir():
            self.open_dir(path)
        elif not QDesktopServices.openUrl(QUrl.fromLocalFile(str(path))):
            self._file_action_failed("Open Failed", f"No application could open '{path.name}'.")

    def _new_entry(self, directory: bool):
        location = self.context_path()
        if location is None:
            QMessageBox.information(self, "New", "No location selected for new file.")
            return
        kind = "folder" if directory else "file"
        name, ok = QInputDialog.getText(self, f"New {kind}", f"Name of the new {kind}:")
        if not ok:
            return
        try:
            create_entry(location, name, directory=directory)
        except ValueError as e:
            self._file_action_failed("Create Failed", str(e))
        except OSError as e:
            info = handle_file_system_error(e, "create_directory" if directory else "create_file", e.filename or location)
            self._file_action_failed("Create Failed", f"The {kind} '{name.strip()}' could not be created.\n{info.user_message}")
        self.refresh()

    def new_file(self):
        self._new_entry(directory=False)

    def new_folder(self):
        self._new_entry(directory=True)

    def rename_selected(self):
        path = self.selected_path()
        if path is None:
            QMessageBox.information(self, "Rename", "No file selected to rename.")
            return
        name, ok = QInputDialog.getText(self, "Rename", "New name:", text=path.name)
        if not ok or name.strip() == path.name:
            return
        try:
            rename_entry(path, name)
        except ValueError as e:
            self._file_action_failed("Rename Failed", str(e))
        except OSError as e:
            info = handle_file_system_error(e, "rename", e.filename or path)
            self._file_action_failed("Rename Failed", f"The file '{path.name}' could not be renamed.\n{info.user_message}")
        self.refresh()

    def delete_selected(self):
        path = self.selected_path()
        if path is None:
            QMessageBox.information(self, "Delete", "No file selected for deletion.")
            return
        what = "the folder" if path.is_dir() else "the file"
        reply = QMessageBox.question(
            self,
            "Confirm delete",
            f"Delete {what} '{path.name}' from the disk?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            delete_entry(path)
        except OSError as e:
            info = handle_file_system_error(e, "delete", path)
            self._file_action_failed("Delete Failed", f"The file '{path.name}' could not be deleted.\n{info.user_message}")
        self.refresh()

    # Git operations

    def init_repository(self):
        self._report(self.workspace.init_repository(self.current_dir))

    def clone_repository(self):
        dialog = CloneDialog(self, self.current_dir)
        if dialog.exec() != QDialog.DialogCode.Accepted or not dialog.selection:
            return
        url, destination = dialog.selection
        result = self.workspace.clone(url, destination)
        show_result(self, result)
        if result.success:
            self.open_dir(destination)

    def stage_selected(self):
        self._report(self.workspace.stage_file(self.selected_path()))

    def restore_selected(self):
        self._report(self.workspace.restore_file(self.selected_path()))

    def unstage_selected(self):
        self._report(self.workspace.unstage_file(self.selected_path()))

    def remove_selected(self):
        path = self.selected_path()
        if path is not None:
            reply = QMessageBox.question(
                self,
                "Confirm remove",
                f"Remove {path.name} from the repository and the disk?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        result = self.workspace.remove_file(path)
        show_result(self, result)
        self.refresh()

    def untrack_selected(self):
        self._report(self.workspace.remove_file(self.selected_path(), cached=True))

    def move_selected(self):
        path = self.selected_path()
        destination = ""
        if path is not None:
            destination, ok = QInputDialog.getText(self, "Move", "Destination path:", text=path.name)
            if not ok:
                return
        result = self.workspace.move_file(path, destination)
        show_result(self, result)
        self.refresh()

    def commit(self):
        path = self.context_path()
        staged = self.workspace.staged_files(path)
        if not staged.success:
            show_result(self, staged)
            return
        dialog = CommitDialog(self, staged.data)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        self._report(self.workspace.commit(path, dialog.message))

    def show_history(self):
        path = self.context_path()
        history = self.workspace.commit_history(path)
        if not history.success:
            show_result(self, history)
            return
        graph = self.workspace.commit_graph(path)
        graph_lines = graph.data if graph.success else [graph.message]
        HistoryDialog(self, history.data, graph_lines, lambda sha: self.workspace.commit_details(path, sha)).exec()

    def _pick_branch(self, title: str, ask_new_name: bool = False):
        path = self.context_path()
        listing = self.workspace.list_branches(path)
        if not listing.success:
            show_result(self, listing)
            return None
        dialog = BranchPickerDialog(self, title, listing.data, self.workspace.current_branch(path), ask_new_name)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return None
        return dialog.selection

    def create_branch(self):
        name, ok = QInputDialog.getText(self, "New branch", "Branch name:")
        if ok:
            self._report(self.workspace.create_branch(self.context_path(), name))

    def delete_branch(self):
        picked = self._pick_branch("Delete branch")
        if picked:
            self._report(self.workspace.delete_branch(self.context_path(), picked[0]))

    def rename_branch(self):
        picked = self._pick_branch("Rename branch", ask_new_name=True)
        if picked:
            self._report(self.workspace.rename_branch(self.context_path(), picked[0], picked[1]))

    def checkout_branch(self):
        picked = self._pick_branch("Checkout")
        if picked:
            result = self.workspace.checkout_branch(self.context_path(), picked[0])
            show_result(self, result)
            self.refresh()

    def merge_branch(self):
        picked = self._pick_branch("Merge into current branch")
        if picked:
            result = self.workspace.merge_branch(self.context_path(), picked[0])
            show_result(self, result)
            self.refresh()

    def closeEvent(self, event):
        if self._loader is not None:
            self._loader.stop()
            self._loader.wait()

        geometry = self.geometry()
        self.cfg["window_geometry"] = f"{geometry.width()}x{geometry.height()}+{geometry.x()}+{geometry.y()}"
        if self.current_dir:
            self.cfg["last_dir"] = str(self.current_dir)
        try:
            save_config(self.cfg)
        except OSError as e:
            logger.warning(f"Failed to save settings on exit: {e}")
        get_error_handler().set_notification_callback(None)
        event.accept()
