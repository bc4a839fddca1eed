"""Modal progress dialog rendering a ProgressTracker."""

from __future__ import annotations

import html
from typing import TYPE_CHECKING

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QProgressBar,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from assetmap.models.progress import ProgressStatus
from assetmap.ui.theme import COLORS, log_color

if TYPE_CHECKING:
    from assetmap.models.progress import ProgressSnapshot
    from assetmap.services.progress import ProgressTracker

_STATUS_COLORS = {
    ProgressStatus.SUCCESS: COLORS["success"],
    ProgressStatus.ERROR: COLORS["error"],
    ProgressStatus.CANCELLED: COLORS["warning"],
}


class ProgressDialog(QDialog):
    """Shows a tracker's bar, status line, summary grid and log.

    The dialog is a pure view: it re-renders from each snapshot the tracker
    pushes and hides itself when the tracker becomes invisible.
    """

    def __init__(self, tracker: ProgressTracker, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._tracker = tracker
        self.setWindowTitle(tracker.title or "Progress")
        self.setModal(True)
        self.setMinimumWidth(520)

        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        self._status_label = QLabel()
        self._status_label.setWordWrap(True)
        self._status_label.setStyleSheet("font-weight: 600;")
        layout.addWidget(self._status_label)

        self._bar = QProgressBar()
        self._bar.setRange(0, 100)
        layout.addWidget(self._bar)

        self._summary_host = QWidget()
        self._summary_grid = QGridLayout(self._summary_host)
        self._summary_grid.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._summary_host)

        self._log = QTextEdit()
        self._log.setObjectName("progressLog")
        self._log.setReadOnly(True)
        self._log.setMinimumHeight(180)
        layout.addWidget(self._log, stretch=1)

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        self._close_btn = QPushButton("Close")
        self._close_btn.clicked.connect(self._on_close_clicked)
        btn_row.addWidget(self._close_btn)
        layout.addLayout(btn_row)

        self._dispose = tracker.add_listener(self._render)
        self._render(tracker.snapshot())

    def _render(self, snap: ProgressSnapshot) -> None:
        if not snap.visible:
            self.hide()
            return
        self.setWindowTitle(snap.title or "Progress")
        self._bar.setValue(round(snap.percent))
        color = _STATUS_COLORS.get(snap.status)
        self._status_label.setText(snap.status_text)
        self._status_label.setStyleSheet(
            f"font-weight: 600; color: {color};" if color else "font-weight: 600;"
        )
        self._render_summary(snap)
        self._log.setHtml(
            "<br>".join(
                f'<span style="color:{log_color(entry.type)}">[{entry.time}] '
                f"{html.escape(entry.message)}</span>"
                for entry in snap.logs
            )
        )
        scrollbar = self._log.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())
        self._close_btn.setEnabled(snap.closable)
        if not self.isVisible():
            self.show()

    def _render_summary(self, snap: ProgressSnapshot) -> None:
        while self._summary_grid.count():
            item = self._summary_grid.takeAt(0)
            widget = item.widget() if item is not None else None
            if widget is not None:
                widget.deleteLater()
        for column, entry in enumerate(snap.summary):
            label = QLabel(entry.label)
            label.setStyleSheet("font-size: 11px;")
            value = QLabel(str(entry.value))
            value.setStyleSheet("font-weight: 700; font-size: 15px;")
            value.setAlignment(Qt.AlignmentFlag.AlignLeft)
            self._summary_grid.addWidget(label, 0, column)
            self._summary_grid.addWidget(value, 1, column)

    def _on_close_clicked(self) -> None:
        self._tracker.close()

    def closeEvent(self, event: QCloseEvent) -> None:
        if not self._tracker.close():
            event.ignore()
            return
        event.accept()

    def dispose(self) -> None:
        """Detach from the tracker; call before the owning view goes away."""
        self._dispose()
