"""History view: filterable query history with delete, CSV export and replay."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)
from result import Err, Ok

from assetmap.models.history import ALL_PLATFORMS_FILTER, HistoryRecord
from assetmap.models.platforms import ALL_PLATFORMS
from assetmap.ui.async_bridge import Subscriptions, async_slot
from assetmap.ui.theme import COLORS, format_count, format_datetime, platform_label
from assetmap.ui.widgets.progress_dialog import ProgressDialog

if TYPE_CHECKING:
    from assetmap.services.container import ServiceContainer

_COLUMNS = ["Time", "Platform", "Query", "Results", "Status", ""]


class HistoryView(QWidget):
    """Lists past searches; rows can be re-run, exported or deleted."""

    rerun_requested = Signal(str, str)  # platform, query

    def __init__(self, services: ServiceContainer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._services = services
        self._history = services.history_service
        self._jobs = services.new_job_coordinator()
        self._tracker = services.new_tracker("Export from history", auto_dismiss=True)
        self._subs = Subscriptions()
        self._rows: list[HistoryRecord] = []

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(8)

        header = QLabel("Query History")
        header.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(header)

        bar = QHBoxLayout()
        self._platform_combo = QComboBox()
        self._platform_combo.addItem("All platforms", ALL_PLATFORMS_FILTER)
        for platform in ALL_PLATFORMS:
            self._platform_combo.addItem(platform_label(platform), str(platform))
        self._platform_combo.currentIndexChanged.connect(lambda _i: self._render())
        bar.addWidget(self._platform_combo)

        self._keyword = QLineEdit()
        self._keyword.setPlaceholderText("Filter by keyword...")
        self._keyword.textChanged.connect(lambda _t: self._render())
        bar.addWidget(self._keyword, stretch=1)

        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self.reload)
        bar.addWidget(refresh_btn)
        export_btn = QPushButton("Export CSV")
        export_btn.clicked.connect(self._on_export_history)
        bar.addWidget(export_btn)
        clear_btn = QPushButton("Clear all")
        clear_btn.clicked.connect(self._on_clear)
        bar.addWidget(clear_btn)
        layout.addLayout(bar)

        self._table = QTableWidget(0, len(_COLUMNS))
        self._table.setHorizontalHeaderLabels(_COLUMNS)
        self._table.horizontalHeader().setStretchLastSection(True)
        self._table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self._table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        layout.addWidget(self._table, stretch=1)

        self._count_label = QLabel("")
        layout.addWidget(self._count_label)

        self._progress = ProgressDialog(self._tracker, self)
        self._subs.add(self._progress.dispose)

    @async_slot
    async def reload(self) -> None:
        result = await self._history.load()
        if isinstance(result, Err):
            QMessageBox.warning(self, "History", result.err_value)
            return
        self._render()

    def _render(self) -> None:
        self._rows = self._history.filtered(
            str(self._platform_combo.currentData()), self._keyword.text().strip()
        )
        self._table.setRowCount(len(self._rows))
        for row, record in enumerate(self._rows):
            self._table.setItem(row, 0, QTableWidgetItem(format_datetime(record.timestamp)))
            self._table.setItem(row, 1, QTableWidgetItem(platform_label(record.platform)))
            self._table.setItem(row, 2, QTableWidgetItem(record.query))
            self._table.setItem(row, 3, QTableWidgetItem(format_count(record.results_count)))
            status = QTableWidgetItem("OK" if record.success else "Failed")
            status.setForeground(QColor(COLORS["success" if record.success else "error"]))
            if record.error_message:
                status.setToolTip(record.error_message)
            self._table.setItem(row, 4, status)
            self._table.setCellWidget(row, 5, self._row_actions(record))
        self._count_label.setText(f"{len(self._rows)} of {len(self._history.records)} records")

    def _row_actions(self, record: HistoryRecord) -> QWidget:
        host = QWidget()
        actions = QHBoxLayout(host)
        actions.setContentsMargins(2, 0, 2, 0)
        rerun = QPushButton("Re-run")
        rerun.clicked.connect(lambda: self.rerun_requested.emit(record.platform, record.query))
        actions.addWidget(rerun)
        export = QPushButton("Export")
        export.setEnabled(record.replayable)
        export.clicked.connect(lambda: self._on_export_record(record))
        actions.addWidget(export)
        delete = QPushButton("Delete")
        delete.clicked.connect(lambda: self._on_delete(record.id))
        actions.addWidget(delete)
        return host

    @async_slot
    async def _on_delete(self, record_id: str) -> None:
        result = await self._history.delete(record_id)
        if isinstance(result, Err):
            QMessageBox.warning(self, "History", result.err_value)
        self._render()

    @async_slot
    async def _on_clear(self) -> None:
        answer = QMessageBox.question(self, "History", "Delete all history records?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        result = await self._history.clear()
        if isinstance(result, Err):
            QMessageBox.warning(self, "History", result.err_value)
        self._render()

    @async_slot
    async def _on_export_history(self) -> None:
        settings = await self._services.settings_service.get()
        start_dir = settings.ok_value.export_path if isinstance(settings, Ok) else ""
        directory = QFileDialog.getExistingDirectory(self, "Export directory", start_dir)
        result = await self._history.export_history(directory)
        if isinstance(result, Ok):
            QMessageBox.information(self, "History", f"Saved to {result.ok_value}")
        elif directory:
            QMessageBox.warning(self, "History", result.err_value)

    @async_slot
    async def _on_export_record(self, record: HistoryRecord) -> None:
        result = await self._history.export_record_assets(record, self._jobs, self._tracker)
        if isinstance(result, Err):
            QMessageBox.warning(self, "Export", result.err_value)

    def dispose(self) -> None:
        self._subs.dispose()
