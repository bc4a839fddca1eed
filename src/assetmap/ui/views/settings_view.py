"""Settings view: app preferences and batch API key entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from result import Err

from assetmap.models.platforms import ALL_PLATFORMS, Platform
from assetmap.models.search import PAGE_SIZE_OPTIONS
from assetmap.models.settings import AppSettings, Language, ThemeMode
from assetmap.ui.async_bridge import Subscriptions, async_slot
from assetmap.ui.theme import COLORS, platform_label, primary_button_style

if TYPE_CHECKING:
    from assetmap.services.container import ServiceContainer

_THEME_LABELS = {ThemeMode.LIGHT: "Light", ThemeMode.DARK: "Dark", ThemeMode.SYSTEM: "System"}
_LANGUAGE_LABELS = {Language.ZH_CN: "简体中文", Language.EN_US: "English"}


class SettingsView(QWidget):
    """Edits AppSettings; the theme selector writes through ThemePreference."""

    def __init__(self, services: ServiceContainer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._settings = services.settings_service
        self._keys = services.key_service
        self._theme = services.theme
        self._subs = Subscriptions()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(12)

        header = QLabel("Settings")
        header.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(header)

        # ── Preferences ──
        prefs = QGroupBox("Preferences")
        form = QFormLayout(prefs)

        path_row = QHBoxLayout()
        self._export_path = QLineEdit()
        path_row.addWidget(self._export_path, stretch=1)
        browse_btn = QPushButton("Browse...")
        browse_btn.clicked.connect(self._on_browse)
        path_row.addWidget(browse_btn)
        form.addRow("Export directory:", path_row)

        self._platform_combo = QComboBox()
        for platform in ALL_PLATFORMS:
            self._platform_combo.addItem(platform_label(platform), str(platform))
        form.addRow("Default platform:", self._platform_combo)

        self._page_size_combo = QComboBox()
        for size in PAGE_SIZE_OPTIONS:
            self._page_size_combo.addItem(str(size), size)
        form.addRow("Page size:", self._page_size_combo)

        self._theme_combo = QComboBox()
        for mode, label in _THEME_LABELS.items():
            self._theme_combo.addItem(label, str(mode))
        self._theme_combo.activated.connect(self._on_theme_chosen)
        form.addRow("Theme:", self._theme_combo)

        self._language_combo = QComboBox()
        for language, label in _LANGUAGE_LABELS.items():
            self._language_combo.addItem(label, str(language))
        form.addRow("Language:", self._language_combo)

        self._auto_validate = QCheckBox("Validate API keys when added")
        form.addRow("", self._auto_validate)

        save_btn = QPushButton("Save")
        save_btn.setStyleSheet(primary_button_style())
        save_btn.clicked.connect(self._on_save)
        form.addRow("", save_btn)
        layout.addWidget(prefs)

        # ── API keys ──
        keys = QGroupBox("Add API keys")
        keys_layout = QFormLayout(keys)
        self._key_platform = QComboBox()
        for platform in ALL_PLATFORMS:
            self._key_platform.addItem(platform_label(platform), str(platform))
        self._key_platform.currentIndexChanged.connect(self._on_key_platform_changed)
        keys_layout.addRow("Platform:", self._key_platform)
        self._email = QLineEdit()
        self._email.setPlaceholderText("Account email (FOFA only)")
        keys_layout.addRow("Email:", self._email)
        self._key_text = QPlainTextEdit()
        self._key_text.setPlaceholderText("One API key per line")
        self._key_text.setMaximumHeight(120)
        keys_layout.addRow("Keys:", self._key_text)
        add_btn = QPushButton("Add keys")
        add_btn.clicked.connect(self._on_add_keys)
        keys_layout.addRow("", add_btn)
        self._key_result = QLabel("")
        self._key_result.setWordWrap(True)
        keys_layout.addRow("", self._key_result)
        layout.addWidget(keys)
        layout.addStretch()

        self._subs.add(self._theme.subscribe(self._sync_theme_combo))
        self._sync_theme_combo(self._theme.get())
        self._on_key_platform_changed(0)

    @async_slot
    async def reload(self) -> None:
        result = await self._settings.get()
        if isinstance(result, Err):
            QMessageBox.warning(self, "Settings", result.err_value)
            return
        self._fill(result.ok_value)

    def _fill(self, settings: AppSettings) -> None:
        self._export_path.setText(settings.export_path)
        self._platform_combo.setCurrentIndex(
            max(0, self._platform_combo.findData(str(settings.default_platform)))
        )
        self._page_size_combo.setCurrentIndex(
            max(0, self._page_size_combo.findData(settings.page_size))
        )
        self._language_combo.setCurrentIndex(
            max(0, self._language_combo.findData(str(settings.language)))
        )
        self._auto_validate.setChecked(settings.auto_validate_api_keys)

    def _collect(self) -> AppSettings:
        return AppSettings(
            export_path=self._export_path.text().strip(),
            default_platform=Platform(self._platform_combo.currentData()),
            page_size=int(self._page_size_combo.currentData()),
            auto_validate_api_keys=self._auto_validate.isChecked(),
            theme=self._theme.get(),
            language=Language(self._language_combo.currentData()),
        )

    def _sync_theme_combo(self, mode: ThemeMode) -> None:
        self._theme_combo.setCurrentIndex(max(0, self._theme_combo.findData(str(mode))))

    def _on_theme_chosen(self, _index: int) -> None:
        self._theme.set(ThemeMode(self._theme_combo.currentData()))

    def _on_browse(self) -> None:
        directory = QFileDialog.getExistingDirectory(
            self, "Export directory", self._export_path.text()
        )
        if directory:
            self._export_path.setText(directory)

    @async_slot
    async def _on_save(self) -> None:
        result = await self._settings.save(self._collect())
        if isinstance(result, Err):
            QMessageBox.warning(self, "Settings", result.err_value)
            return
        QMessageBox.information(self, "Settings", "Settings saved")

    def _on_key_platform_changed(self, _index: int) -> None:
        self._email.setEnabled(self._key_platform.currentData() == Platform.FOFA)

    @async_slot
    async def _on_add_keys(self) -> None:
        email = self._email.text().strip() or None
        result = await self._keys.add_batch(
            str(self._key_platform.currentData()), self._key_text.toPlainText(), email
        )
        if isinstance(result, Err):
            self._key_result.setStyleSheet(f"color: {COLORS['error']};")
            self._key_result.setText(result.err_value)
            return
        outcome = result.ok_value
        color = COLORS["success"] if outcome.all_succeeded else COLORS["warning"]
        self._key_result.setStyleSheet(f"color: {color};")
        self._key_result.setText(f"Added {outcome.succeeded}, failed {outcome.failed}")
        if outcome.all_succeeded:
            self._key_text.clear()

    def dispose(self) -> None:
        self._subs.dispose()
