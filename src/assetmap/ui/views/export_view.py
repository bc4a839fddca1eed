"""Export view: multi-page single-platform or all-platform exports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from result import Err, Ok

from assetmap.models.platforms import ALL_PLATFORMS
from assetmap.models.search import (
    DEFAULT_PAGE_SIZE,
    EXPORT_PAGE_OPTIONS,
    PAGE_SIZE_OPTIONS,
    ExportScope,
    TimeRange,
)
from assetmap.ui.async_bridge import Subscriptions, async_slot
from assetmap.ui.theme import platform_label, primary_button_style
from assetmap.ui.widgets.progress_dialog import ProgressDialog

if TYPE_CHECKING:
    from assetmap.services.container import ServiceContainer

_TIME_RANGE_LABELS = {
    TimeRange.ALL: "All time",
    TimeRange.DAY: "Last day",
    TimeRange.WEEK: "Last 7 days",
    TimeRange.MONTH: "Last 30 days",
    TimeRange.QUARTER: "Last 90 days",
    TimeRange.YEAR: "Last year",
    TimeRange.CUSTOM: "Custom range",
}


class ExportView(QWidget):
    """Form for platform and all-platform exports with a live progress dialog."""

    def __init__(self, services: ServiceContainer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._services = services
        self._jobs = services.new_job_coordinator()
        self._tracker = services.new_tracker("Export")
        self._subs = Subscriptions()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(10)

        header = QLabel("Export Data")
        header.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(header)

        form = QFormLayout()
        form.setSpacing(8)

        self._scope_combo = QComboBox()
        self._scope_combo.addItem("Single platform", ExportScope.PLATFORM)
        self._scope_combo.addItem("All platforms", ExportScope.ALL)
        self._scope_combo.currentIndexChanged.connect(self._on_scope_changed)
        form.addRow("Scope:", self._scope_combo)

        self._platform_combo = QComboBox()
        for platform in ALL_PLATFORMS:
            self._platform_combo.addItem(platform_label(platform), platform)
        form.addRow("Platform:", self._platform_combo)

        self._query_input = QLineEdit()
        self._query_input.setPlaceholderText("Query to export")
        form.addRow("Query:", self._query_input)

        self._pages_combo = QComboBox()
        for pages in EXPORT_PAGE_OPTIONS:
            self._pages_combo.addItem(f"{pages} pages", pages)
        form.addRow("Pages:", self._pages_combo)

        self._page_size_combo = QComboBox()
        for size in PAGE_SIZE_OPTIONS:
            self._page_size_combo.addItem(f"{size} / page", size)
        self._page_size_combo.setCurrentIndex(PAGE_SIZE_OPTIONS.index(DEFAULT_PAGE_SIZE))
        form.addRow("Page size:", self._page_size_combo)

        self._range_combo = QComboBox()
        for time_range, label in _TIME_RANGE_LABELS.items():
            self._range_combo.addItem(label, time_range)
        self._range_combo.currentIndexChanged.connect(self._on_range_changed)
        form.addRow("Time range:", self._range_combo)

        dates = QHBoxLayout()
        self._start_date = QDateEdit(QDate.currentDate().addDays(-30))
        self._start_date.setCalendarPopup(True)
        self._end_date = QDateEdit(QDate.currentDate())
        self._end_date.setCalendarPopup(True)
        dates.addWidget(self._start_date)
        dates.addWidget(QLabel("to"))
        dates.addWidget(self._end_date)
        dates.addStretch()
        self._dates_host = QWidget()
        self._dates_host.setLayout(dates)
        form.addRow("Dates:", self._dates_host)
        layout.addLayout(form)

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        self._export_btn = QPushButton("Start export")
        self._export_btn.setStyleSheet(primary_button_style())
        self._export_btn.clicked.connect(self._on_export_clicked)
        btn_row.addWidget(self._export_btn)
        layout.addLayout(btn_row)

        self._result_label = QLabel("")
        self._result_label.setWordWrap(True)
        layout.addWidget(self._result_label)
        layout.addStretch()

        self._progress = ProgressDialog(self._tracker, self)
        self._subs.add(self._progress.dispose)
        self._on_range_changed(self._range_combo.currentIndex())

    def _on_scope_changed(self, _index: int) -> None:
        self._platform_combo.setEnabled(self._scope_combo.currentData() == ExportScope.PLATFORM)

    def _on_range_changed(self, _index: int) -> None:
        self._dates_host.setVisible(self._range_combo.currentData() == TimeRange.CUSTOM)

    @async_slot
    async def _on_export_clicked(self) -> None:
        query = self._query_input.text().strip()
        pages = int(self._pages_combo.currentData())
        page_size = int(self._page_size_combo.currentData())
        time_range = TimeRange(self._range_combo.currentData())
        start_date = self._start_date.date().toString("yyyy-MM-dd")
        end_date = self._end_date.date().toString("yyyy-MM-dd")

        self._export_btn.setEnabled(False)
        try:
            if self._scope_combo.currentData() == ExportScope.ALL:
                result = await self._jobs.export_all_platforms(
                    query,
                    pages,
                    page_size,
                    self._tracker,
                    time_range=time_range,
                    start_date=start_date,
                    end_date=end_date,
                )
            else:
                result = await self._jobs.export(
                    self._platform_combo.currentData(),
                    query,
                    pages,
                    page_size,
                    self._tracker,
                    time_range=time_range,
                    start_date=start_date,
                    end_date=end_date,
                )
        finally:
            self._export_btn.setEnabled(True)

        match result:
            case Ok(path) if path:
                self._result_label.setText(f"Saved to {path}")
            case Ok():
                self._result_label.setText("Export finished")
            case Err(message):
                self._result_label.setText(message)
                if not self._tracker.visible:
                    QMessageBox.warning(self, "Export", message)

    def dispose(self) -> None:
        self._subs.dispose()
