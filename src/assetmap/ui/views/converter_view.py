"""Converter view: validate and translate queries between platform dialects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from result import Err

from assetmap.models.conversion import ALL_TARGETS
from assetmap.models.platforms import ALL_PLATFORMS
from assetmap.ui.async_bridge import async_slot
from assetmap.ui.theme import COLORS, platform_label, primary_button_style

if TYPE_CHECKING:
    from assetmap.services.container import ServiceContainer


class ConverterView(QWidget):
    """Source/target selectors, example seeds, validation and conversion output."""

    def __init__(self, services: ServiceContainer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._translation = services.translation_service

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(8)

        header = QLabel("Query Converter")
        header.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(header)

        selectors = QHBoxLayout()
        selectors.addWidget(QLabel("From:"))
        self._source_combo = QComboBox()
        for platform in ALL_PLATFORMS:
            self._source_combo.addItem(platform_label(platform), str(platform))
        self._source_combo.currentIndexChanged.connect(lambda _i: self._refresh_examples())
        selectors.addWidget(self._source_combo)
        selectors.addWidget(QLabel("To:"))
        self._target_combo = QComboBox()
        self._target_combo.addItem("All platforms", ALL_TARGETS)
        for platform in ALL_PLATFORMS:
            self._target_combo.addItem(platform_label(platform), str(platform))
        selectors.addWidget(self._target_combo)
        selectors.addStretch()
        layout.addLayout(selectors)

        self._examples_combo = QComboBox()
        self._examples_combo.activated.connect(self._on_example_chosen)
        layout.addWidget(self._examples_combo)

        self._input = QPlainTextEdit()
        self._input.setPlaceholderText("Query to convert")
        self._input.setMaximumHeight(100)
        layout.addWidget(self._input)

        buttons = QHBoxLayout()
        validate_btn = QPushButton("Validate")
        validate_btn.clicked.connect(self._on_validate)
        buttons.addWidget(validate_btn)
        convert_btn = QPushButton("Convert")
        convert_btn.setStyleSheet(primary_button_style())
        convert_btn.clicked.connect(self._on_convert)
        buttons.addWidget(convert_btn)
        buttons.addStretch()
        layout.addLayout(buttons)

        self._message = QLabel("")
        self._message.setWordWrap(True)
        layout.addWidget(self._message)

        self._results = QListWidget()
        self._results.itemDoubleClicked.connect(self._copy_item)
        layout.addWidget(self._results, stretch=1)
        hint = QLabel("Double-click a result to copy it.")
        hint.setStyleSheet("font-size: 11px;")
        layout.addWidget(hint)

        self._refresh_examples()

    def _source(self) -> str:
        return str(self._source_combo.currentData())

    def _refresh_examples(self) -> None:
        self._examples_combo.clear()
        self._examples_combo.addItem("Examples...")
        for example in self._translation.examples_for(self._source()):
            self._examples_combo.addItem(example)

    def _on_example_chosen(self, index: int) -> None:
        example = self._translation.example(self._source(), index - 1)
        if example is not None:
            self._input.setPlainText(example)

    def _show_message(self, text: str, *, error: bool) -> None:
        color = COLORS["error"] if error else COLORS["success"]
        self._message.setStyleSheet(f"color: {color};")
        self._message.setText(text)

    @async_slot
    async def _on_validate(self) -> None:
        result = await self._translation.validate(self._input.toPlainText(), self._source())
        if isinstance(result, Err):
            self._show_message(result.err_value, error=True)
            return
        self._show_message("Query syntax is valid", error=False)

    @async_slot
    async def _on_convert(self) -> None:
        result = await self._translation.convert(
            self._input.toPlainText(), self._source(), str(self._target_combo.currentData())
        )
        self._results.clear()
        if isinstance(result, Err):
            self._show_message(result.err_value, error=True)
            return
        for conversion in result.ok_value:
            item = QListWidgetItem(f"{platform_label(conversion.platform)}:  {conversion.query}")
            item.setToolTip(conversion.query)
            item.setData(Qt.ItemDataRole.UserRole, conversion.query)
            self._results.addItem(item)
        self._show_message(f"Converted to {len(result.ok_value)} platform(s)", error=False)

    def _copy_item(self, item: QListWidgetItem) -> None:
        clipboard = QApplication.clipboard()
        clipboard.setText(str(item.data(Qt.ItemDataRole.UserRole)))
        self._show_message("Copied to clipboard", error=False)
