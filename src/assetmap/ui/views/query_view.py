"""Query view: platform tabs, composer input, location filter, paged results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QTabBar,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)
from result import Err, Ok

from assetmap.models.platforms import ALL_PLATFORMS, Platform, parse_platform
from assetmap.models.search import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS, AssetResult
from assetmap.services.composer import QueryComposer
from assetmap.ui.async_bridge import Subscriptions, async_slot
from assetmap.ui.theme import format_count, platform_color, platform_label, primary_button_style
from assetmap.ui.widgets.hint_chip import HintChip
from assetmap.ui.widgets.progress_dialog import ProgressDialog

if TYPE_CHECKING:
    from assetmap.models.dialects import SyntaxHint
    from assetmap.services.container import ServiceContainer

RESULT_COLUMNS = [
    ("url", "URL"),
    ("ip", "IP"),
    ("port", "Port"),
    ("web_title", "Title"),
    ("country", "Country"),
    ("province", "Province"),
    ("city", "City"),
    ("server", "Server"),
]


class QueryView(QWidget):
    """Compose a query for one platform, run it and page through results."""

    def __init__(self, services: ServiceContainer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._services = services
        self._composer = QueryComposer(Platform.HUNTER)
        self._jobs = services.new_job_coordinator()
        self._tracker = services.new_tracker("Asset query")
        self._subs = Subscriptions()
        self._page = 1
        self._page_size = DEFAULT_PAGE_SIZE

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(8)

        header = QLabel("Asset Query")
        header.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(header)

        # ── Platform tabs ──
        self._tabs = QTabBar()
        for platform in ALL_PLATFORMS:
            self._tabs.addTab(platform_label(platform))
        self._tabs.currentChanged.connect(self._on_tab_changed)
        layout.addWidget(self._tabs)

        # ── Query input ──
        bar = QHBoxLayout()
        bar.setSpacing(8)
        self._input = QLineEdit()
        self._input.textEdited.connect(self._on_text_edited)
        self._input.returnPressed.connect(self._on_search_clicked)
        bar.addWidget(self._input, stretch=1)

        self._page_size_combo = QComboBox()
        for size in PAGE_SIZE_OPTIONS:
            self._page_size_combo.addItem(f"{size} / page", size)
        self._page_size_combo.setCurrentIndex(PAGE_SIZE_OPTIONS.index(DEFAULT_PAGE_SIZE))
        self._page_size_combo.currentIndexChanged.connect(self._on_page_size_changed)
        bar.addWidget(self._page_size_combo)

        self._search_btn = QPushButton("Search")
        self._search_btn.setStyleSheet(primary_button_style())
        self._search_btn.clicked.connect(self._on_search_clicked)
        bar.addWidget(self._search_btn)
        layout.addLayout(bar)

        self._suggestions = QListWidget()
        self._suggestions.setMaximumHeight(140)
        self._suggestions.itemClicked.connect(self._on_suggestion_clicked)
        self._suggestions.hide()
        layout.addWidget(self._suggestions)

        # ── Hint chips ──
        self._chip_row = QHBoxLayout()
        self._chip_row.setSpacing(6)
        layout.addLayout(self._chip_row)

        # ── Location filter ──
        loc = QHBoxLayout()
        loc.setSpacing(8)
        self._province = QLineEdit()
        self._province.setPlaceholderText("Province")
        loc.addWidget(self._province)
        self._city = QLineEdit()
        self._city.setPlaceholderText("City")
        loc.addWidget(self._city)
        self._append_check = QCheckBox("Append to query")
        self._append_check.setChecked(True)
        loc.addWidget(self._append_check)
        apply_btn = QPushButton("Apply location")
        apply_btn.clicked.connect(self._on_apply_location)
        loc.addWidget(apply_btn)
        loc.addStretch()
        layout.addLayout(loc)

        # ── Results ──
        self._table = QTableWidget(0, len(RESULT_COLUMNS))
        self._table.setHorizontalHeaderLabels([label for _key, label in RESULT_COLUMNS])
        self._table.horizontalHeader().setStretchLastSection(True)
        self._table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self._table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        layout.addWidget(self._table, stretch=1)

        footer = QHBoxLayout()
        self._total_label = QLabel("")
        footer.addWidget(self._total_label)
        footer.addStretch()
        self._prev_btn = QPushButton("Previous")
        self._prev_btn.clicked.connect(lambda: self._go_to_page(self._page - 1))
        footer.addWidget(self._prev_btn)
        self._page_label = QLabel("")
        footer.addWidget(self._page_label)
        self._next_btn = QPushButton("Next")
        self._next_btn.clicked.connect(lambda: self._go_to_page(self._page + 1))
        footer.addWidget(self._next_btn)
        self._export_btn = QPushButton("Export page")
        self._export_btn.clicked.connect(self._on_export_current)
        footer.addWidget(self._export_btn)
        layout.addLayout(footer)

        self._progress = ProgressDialog(self._tracker, self)
        self._subs.add(self._progress.dispose)

        self._refresh_platform()

    # ── Composer bindings ──

    def _on_tab_changed(self, index: int) -> None:
        if 0 <= index < len(ALL_PLATFORMS):
            self.switch_platform(ALL_PLATFORMS[index])

    def select_platform(self, platform: Platform) -> None:
        """Select a platform tab; the tab change drives the composer."""
        index = ALL_PLATFORMS.index(platform)
        if index == self._tabs.currentIndex():
            self.switch_platform(platform)
        else:
            self._tabs.setCurrentIndex(index)

    def rerun(self, platform: str, query: str) -> None:
        """Load a historical query and search its first page."""
        self.select_platform(parse_platform(platform))
        self._composer.query = query
        self._input.setText(query)
        self._go_to_page(1)

    def switch_platform(self, platform: Platform) -> None:
        self._composer.switch_platform(platform)
        self._jobs.clear_page()
        self._page = 1
        self._refresh_platform()

    def _refresh_platform(self) -> None:
        dialect = self._composer.dialect
        self._input.setText(self._composer.query)
        self._input.setPlaceholderText(dialect.placeholder)
        self._suggestions.clear()
        self._suggestions.hide()
        while self._chip_row.count():
            item = self._chip_row.takeAt(0)
            widget = item.widget() if item is not None else None
            if widget is not None:
                widget.deleteLater()
        color = platform_color(self._composer.platform)
        for hint in dialect.hints[:8]:
            chip = HintChip(hint, color)
            chip.picked.connect(self._on_fragment_picked)
            self._chip_row.addWidget(chip)
        self._chip_row.addStretch()
        self._render_results([], 0)

    def _on_text_edited(self, text: str) -> None:
        self._show_suggestions(self._composer.set_text(text))

    def _show_suggestions(self, hints: list[SyntaxHint]) -> None:
        self._suggestions.clear()
        for hint in hints:
            item = QListWidgetItem(f"{hint.example}    {hint.description}")
            item.setData(Qt.ItemDataRole.UserRole, hint.example)
            self._suggestions.addItem(item)
        self._suggestions.setVisible(bool(hints) and self._input.hasFocus())

    def _on_suggestion_clicked(self, item: QListWidgetItem) -> None:
        self._on_fragment_picked(str(item.data(Qt.ItemDataRole.UserRole)))

    def _on_fragment_picked(self, fragment: str) -> None:
        self._composer.query = self._input.text()
        self._input.setText(self._composer.select(fragment))
        self._suggestions.hide()
        self._input.setFocus()

    def _on_apply_location(self) -> None:
        self._composer.query = self._input.text()
        self._input.setText(
            self._composer.apply_location(
                self._province.text().strip(),
                self._city.text().strip(),
                append=self._append_check.isChecked(),
            )
        )

    def _on_page_size_changed(self, index: int) -> None:
        self._page_size = int(self._page_size_combo.itemData(index))

    # ── Search ──

    def _on_search_clicked(self) -> None:
        self._go_to_page(1)

    def _go_to_page(self, page: int) -> None:
        if page < 1:
            return
        self._search(page)

    @async_slot
    async def _search(self, page: int) -> None:
        query = self._input.text().strip()
        if not query:
            QMessageBox.warning(self, "Asset Query", "Enter a query first.")
            return
        self._composer.query = query
        self._suggestions.hide()
        self._search_btn.setEnabled(False)
        try:
            result = await self._jobs.search(
                self._composer.platform,
                query,
                page=page,
                page_size=self._page_size,
                tracker=self._tracker,
            )
        finally:
            self._search_btn.setEnabled(True)
        if isinstance(result, Ok):
            self._page = page
            self._composer.results = result.ok_value
            self._render_results(result.ok_value.results, result.ok_value.total)
        elif not self._tracker.visible:
            QMessageBox.warning(self, "Asset Query", result.err_value)

    def _render_results(self, rows: list[AssetResult], total: int) -> None:
        self._table.setRowCount(len(rows))
        for r, row in enumerate(rows):
            for c, (key, _label) in enumerate(RESULT_COLUMNS):
                value = getattr(row, key, None)
                self._table.setItem(r, c, QTableWidgetItem("" if value is None else str(value)))
        pages = max(1, -(-total // self._page_size)) if total else 0
        self._total_label.setText(f"{format_count(total)} results" if total else "")
        self._page_label.setText(f"{self._page} / {pages}" if pages else "")
        self._prev_btn.setEnabled(self._page > 1)
        self._next_btn.setEnabled(self._page < pages)
        self._export_btn.setEnabled(bool(rows))

    # ── Export ──

    @async_slot
    async def _on_export_current(self) -> None:
        result = await self._jobs.export_current(
            self._composer.platform, self._composer.query, self._page_size, self._tracker
        )
        if isinstance(result, Err) and not self._tracker.visible:
            QMessageBox.warning(self, "Export", result.err_value)

    def dispose(self) -> None:
        self._subs.dispose()
