"""Dialog components for Git File Browser."""

from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFileDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
)

from models import BranchRef, CommitInfo, Credentials, OperationResult

DIALOG_STYLE = """
    QDialog {
        background-color: #0f1115;
        color: #e6e7ee;
    }
    QLabel {
        color: #e6e7ee;
        font-size: 11px;
    }
    QLineEdit, QPlainTextEdit, QTextEdit, QComboBox, QListWidget, QTableWidget {
        background-color: #151823;
        color: #e6e7ee;
        border: 1px solid #404757;
        border-radius: 4px;
        padding: 6px;
        font-size: 11px;
    }
    QLineEdit:focus, QPlainTextEdit:focus, QComboBox:focus {
        border: 2px solid #7c7fff;
    }
    QPushButton {
        background-color: #1a1f2e;
        color: #e6e7ee;
        border: 1px solid #404757;
        border-radius: 4px;
        padding: 8px 16px;
        font-size: 11px;
    }
    QPushButton:hover {
        background-color: #20273a;
    }
    QPushButton:default {
        background-color: #7c7fff;
        color: #ffffff;
        border: 1px solid #7c7fff;
    }
"""


def _button_row(dialog: QDialog, accept_text: str, on_accept) -> QHBoxLayout:
    row = QHBoxLayout()
    row.addStretch()

    cancel_btn = QPushButton("Cancel")
    cancel_btn.clicked.connect(dialog.reject)
    row.addWidget(cancel_btn)

    ok_btn = QPushButton(accept_text)
    ok_btn.clicked.connect(on_accept)
    ok_btn.setDefault(True)
    row.addWidget(ok_btn)
    return row


def show_result(parent, result: OperationResult):
    """Report an OperationResult with a message box matching its outcome."""
    if result.success:
        QMessageBox.information(parent, result.title, result.message)
    else:
        QMessageBox.critical(parent, result.title, result.message)


class CommitDialog(QDialog):
    """Shows the staged files and asks for a commit message."""

    def __init__(self, parent, staged_files):
        super().__init__(parent)
        self.setWindowTitle("Commit")
        self.setModal(True)
        self.message = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(10)

        layout.addWidget(QLabel(f"Staged files ({len(staged_files)}):"))
        self.files_list = QListWidget()
        self.files_list.addItems(sorted(staged_files))
        self.files_list.setMaximumHeight(180)
        layout.addWidget(self.files_list)

        layout.addWidget(QLabel("Commit message:"))
        self.message_edit = QPlainTextEdit()
        self.message_edit.setMinimumWidth(420)
        self.message_edit.setMaximumHeight(120)
        layout.addWidget(self.message_edit)

        layout.addLayout(_button_row(self, "Commit", self._accept))
        self.setStyleSheet(DIALOG_STYLE)
        self.message_edit.setFocus()

    def _accept(self):
        # blank messages are reported by the commit operation itself
        self.message = self.message_edit.toPlainText()
        self.accept()


class BranchPickerDialog(QDialog):
    """Select a branch, optionally also entering a new name."""

    def __init__(self, parent, title: str, branches: list[BranchRef], current: str = "",
                 ask_new_name: bool = False, new_name_label: str = "New branch name:"):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self.selection = None  # (selected ref name, new name or None)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(10)

        form = QGridLayout()
        form.setSpacing(8)
        form.addWidget(QLabel("Branch:"), 0, 0)
        self.branch_combo = QComboBox()
        self.branch_combo.setMinimumWidth(300)
        for ref in branches:
            label = f"{ref.name} (current)" if ref.name == current else ref.name
            self.branch_combo.addItem(label, ref.ref)
        form.addWidget(self.branch_combo, 0, 1)

        self.name_entry = None
        if ask_new_name:
            form.addWidget(QLabel(new_name_label), 1, 0)
            self.name_entry = QLineEdit()
            self.name_entry.returnPressed.connect(self._accept)
            form.addWidget(self.name_entry, 1, 1)
        layout.addLayout(form)

        layout.addLayout(_button_row(self, "OK", self._accept))
        self.setStyleSheet(DIALOG_STYLE)

    def _accept(self):
        selected = self.branch_combo.currentData() or ""
        new_name = self.name_entry.text() if self.name_entry is not None else None
        self.selection = (selected, new_name)
        self.accept()


class CloneDialog(QDialog):
    """Asks for a repository URL and an empty destination directory."""

    def __init__(self, parent, start_dir: Optional[Path] = None):
        super().__init__(parent)
        self.setWindowTitle("Clone repository")
        self.setModal(True)
        self.start_dir = start_dir or Path.home()
        self.selection = None  # (url, destination)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(10)

        layout.addWidget(QLabel("Repository address:"))
        self.url_entry = QLineEdit()
        self.url_entry.setMinimumWidth(420)
        self.url_entry.setPlaceholderText("https://example.com/owner/project.git")
        layout.addWidget(self.url_entry)

        layout.addWidget(QLabel("Destination (empty directory):"))
        dest_row = QHBoxLayout()
        self.dest_entry = QLineEdit()
        dest_row.addWidget(self.dest_entry)
        browse_btn = QPushButton("Browse…")
        browse_btn.clicked.connect(self._browse)
        dest_row.addWidget(browse_btn)
        layout.addLayout(dest_row)

        layout.addLayout(_button_row(self, "Clone", self._accept))
        self.setStyleSheet(DIALOG_STYLE)
        self.url_entry.setFocus()

    def _browse(self):
        chosen = QFileDialog.getExistingDirectory(self, "Choose clone destination", str(self.start_dir))
        if chosen:
            self.dest_entry.setText(chosen)

    def _accept(self):
        dest = self.dest_entry.text().strip()
        if not dest:
            QMessageBox.critical(self, "Clone Error", "Please choose a destination directory.")
            return
        self.selection = (self.url_entry.text(), Path(dest).expanduser())
        self.accept()


class CredentialsDialog(QDialog):
    """Two-field prompt for the identifier and access token."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Authentication required")
        self.setModal(True)
        self.credentials = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(10)
        layout.addWidget(QLabel("The remote repository requires credentials."))

        form = QGridLayout()
        form.addWidget(QLabel("ID:"), 0, 0)
        self.id_entry = QLineEdit()
        form.addWidget(self.id_entry, 0, 1)
        form.addWidget(QLabel("Token:"), 1, 0)
        self.token_entry = QLineEdit()
        self.token_entry.setEchoMode(QLineEdit.EchoMode.Password)
        self.token_entry.returnPressed.connect(self._accept)
        form.addWidget(self.token_entry, 1, 1)
        layout.addLayout(form)

        layout.addLayout(_button_row(self, "Retry", self._accept))
        self.setStyleSheet(DIALOG_STYLE)
        self.id_entry.setFocus()

    def _accept(self):
        identifier = self.id_entry.text().strip()
        token = self.token_entry.text().strip()
        if not identifier or not token:
            QMessageBox.critical(self, "Clone Error", "Both ID and token are required.")
            return
        self.credentials = Credentials(identifier=identifier, token=token)
        self.accept()


def ask_credentials(parent=None) -> Optional[Credentials]:
    """Run the credentials dialog; None when cancelled."""
    dialog = CredentialsDialog(parent)
    if dialog.exec() == QDialog.DialogCode.Accepted:
        return dialog.credentials
    return None


class HistoryDialog(QDialog):
    """Commit list with details, plus the ASCII commit graph."""

    def __init__(self, parent, commits: list[CommitInfo], graph_lines: list[str],
                 load_details: Callable[[str], OperationResult]):
        super().__init__(parent)
        self.setWindowTitle("History")
        self.resize(900, 560)
        self.commits = commits
        self.load_details = load_details

        layout = QVBoxLayout(self)
        tabs = QTabWidget()

        splitter = QSplitter(Qt.Orientation.Vertical)
        self.table = QTableWidget(len(commits), 4)
        self.table.setHorizontalHeaderLabels(["Commit", "Author", "Date", "Message"])
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.horizontalHeader().setStretchLastSection(True)
        for row, info in enumerate(commits):
            self.table.setItem(row, 0, QTableWidgetItem(info.short_sha))
            self.table.setItem(row, 1, QTableWidgetItem(info.author_name))
            self.table.setItem(row, 2, QTableWidgetItem(info.committed_datetime.strftime("%Y-%m-%d %H:%M")))
            self.table.setItem(row, 3, QTableWidgetItem(info.summary))
        self.table.currentCellChanged.connect(self._on_row_changed)
        splitter.addWidget(self.table)

        self.details = QTextEdit()
        self.details.setReadOnly(True)
        splitter.addWidget(self.details)
        tabs.addTab(splitter, "Commits")

        graph = QPlainTextEdit()
        graph.setReadOnly(True)
        graph.setFont(QFont("monospace", 11))
        graph.setPlainText("\n".join(graph_lines))
        tabs.addTab(graph, "Graph")

        layout.addWidget(tabs)
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        layout.addWidget(close_btn, alignment=Qt.AlignmentFlag.AlignRight)
        self.setStyleSheet(DIALOG_STYLE)

    def _on_row_changed(self, row, _column, _prev_row, _prev_column):
        if not 0 <= row < len(self.commits):
            return
        result = self.load_details(self.commits[row].sha)
        if not result.success:
            self.details.setPlainText(result.message)
            return
        info: CommitInfo = result.data
        parents = ", ".join(p[:10] for p in info.parents) or "(root commit)"
        self.details.setPlainText(
            f"Commit:  {info.sha}\n"
            f"Parents: {parents}\n"
            f"Author:  {info.author_name} <{info.author_email}>\n"
            f"Date:    {info.committed_datetime.isoformat(sep=' ')}\n\n"
            f"{info.summary}"
        )
