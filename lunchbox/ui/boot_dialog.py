"""
Boot progress dialog and the Qt-backed status sink that feeds it.
"""

import html
import logging
from typing import Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QProgressBar, QPushButton, QTextEdit, QWidget
)

import qtawesome as qta

from ..core.status import SEVERITY_ERROR, SEVERITY_SUCCESS, SEVERITY_WARNING, StatusSink

logger = logging.getLogger(__name__)

_SEVERITY_COLORS = {
    SEVERITY_ERROR: "#ef4444",
    SEVERITY_WARNING: "#f59e0b",
    SEVERITY_SUCCESS: "#22c55e",
}


class _SinkSignals(QObject):
    line_appended = Signal(str, str)  # text, severity ("" for none)
    progress_changed = Signal(int)


class QtStatusSink(StatusSink):
    """
    Status sink that re-emits every line and progress change as Qt signals.

    Safe to write from a worker thread: connected slots in the GUI thread
    receive the events through queued connections.
    """

    def __init__(self):
        super().__init__()
        self.signals = _SinkSignals()

    def _on_append(self, text: str, severity: Optional[str]) -> None:
        self.signals.line_appended.emit(text, severity or "")

    def _on_progress(self, percent: int) -> None:
        self.signals.progress_changed.emit(percent)


class BootDialog(QDialog):
    """Shows boot log lines and overall progress."""

    def __init__(self, title: str = "Reading configuration...", parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setMinimumSize(640, 420)
        self.setup_ui(title)

    def setup_ui(self, title: str):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(12)

        header = QHBoxLayout()
        self.status_icon = QLabel()
        self.status_icon.setPixmap(qta.icon('fa5s.cog', color='#9ca3af').pixmap(16, 16))
        header.addWidget(self.status_icon)
        self.title_label = QLabel(title)
        self.title_label.setProperty("class", "header")
        header.addWidget(self.title_label)
        header.addStretch()
        layout.addLayout(header)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        layout.addWidget(self.progress_bar)

        self.log_view = QTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setStyleSheet(
            "QTextEdit { background-color: #1e1e1e; color: #d4d4d4; "
            "font-family: Consolas, monospace; font-size: 12px; }"
        )
        layout.addWidget(self.log_view)

        buttons = QHBoxLayout()
        buttons.addStretch()
        self.close_btn = QPushButton("Close")
        self.close_btn.setEnabled(False)
        self.close_btn.clicked.connect(self.hide)
        buttons.addWidget(self.close_btn)
        layout.addLayout(buttons)

    def attach(self, sink: QtStatusSink) -> None:
        """Display everything ``sink`` receives from now on."""
        sink.signals.line_appended.connect(self.append_line)
        sink.signals.progress_changed.connect(self.set_progress)

    def reset(self, title: str) -> None:
        self.title_label.setText(title)
        self.progress_bar.setValue(0)
        self.close_btn.setEnabled(False)
        self.status_icon.setPixmap(qta.icon('fa5s.cog', color='#9ca3af').pixmap(16, 16))

    def append_line(self, text: str, severity: str = "") -> None:
        escaped = html.escape(text).replace("\t", "&nbsp;&nbsp;&nbsp;&nbsp;").replace("\n", "<br>")
        color = _SEVERITY_COLORS.get(severity)
        if color:
            escaped = f'<span style="color: {color};">{escaped}</span>'
        self.log_view.append(escaped)
        if severity == SEVERITY_ERROR:
            self.show_failed()

    def set_progress(self, percent: int) -> None:
        self.progress_bar.setValue(percent)

    def show_failed(self) -> None:
        self.status_icon.setPixmap(qta.icon('fa5s.times-circle', color='#ef4444').pixmap(16, 16))
        self.close_btn.setEnabled(True)

    def show_finished(self) -> None:
        self.status_icon.setPixmap(qta.icon('fa5s.check-circle', color='#22c55e').pixmap(16, 16))
        self.progress_bar.setValue(100)
        self.close_btn.setEnabled(True)
