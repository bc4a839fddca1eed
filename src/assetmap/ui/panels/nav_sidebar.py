"""Left navigation sidebar with icon-backed navigation buttons."""

from __future__ import annotations

from PySide6.QtCore import QSize, Qt, Signal
from PySide6.QtWidgets import QLabel, QPushButton, QStyle, QVBoxLayout, QWidget

from assetmap.models.settings import ThemeMode
from assetmap.ui.theme import COLORS, palette_for

NAV_ITEMS = [
    ("query", "Query", QStyle.StandardPixmap.SP_FileDialogContentsView),
    ("export", "Export", QStyle.StandardPixmap.SP_DialogSaveButton),
    ("history", "History", QStyle.StandardPixmap.SP_FileDialogDetailedView),
    ("converter", "Convert", QStyle.StandardPixmap.SP_BrowserReload),
    ("settings", "Settings", QStyle.StandardPixmap.SP_FileDialogInfoView),
]


class NavSidebar(QWidget):
    """Vertical sidebar for top-level navigation."""

    nav_changed = Signal(str)
    theme_toggle_requested = Signal()

    def __init__(self, mode: ThemeMode = ThemeMode.DARK, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFixedWidth(96)
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self._mode = mode
        self._current = ""

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 10, 8, 10)
        layout.setSpacing(6)

        self._title = QLabel("ASSET\nMAP")
        self._title.setObjectName("brand")
        self._title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._title)

        self._buttons: dict[str, QPushButton] = {}
        for name, label, icon_type in NAV_ITEMS:
            btn = QPushButton(label)
            btn.setIcon(self.style().standardIcon(icon_type))
            btn.setIconSize(QSize(14, 14))
            btn.setFixedSize(80, 36)
            btn.setCheckable(True)
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            btn.clicked.connect(lambda _checked, n=name: self._on_clicked(n))
            layout.addWidget(btn, alignment=Qt.AlignmentFlag.AlignCenter)
            self._buttons[name] = btn

        layout.addStretch()

        self._theme_btn = QPushButton()
        self._theme_btn.setFixedSize(80, 34)
        self._theme_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self._theme_btn.setToolTip("Toggle light/dark theme")
        self._theme_btn.clicked.connect(self.theme_toggle_requested.emit)
        layout.addWidget(self._theme_btn, alignment=Qt.AlignmentFlag.AlignCenter)

        self.set_theme(mode)
        self.select_nav("query")

    @property
    def current(self) -> str:
        return self._current

    def select_nav(self, name: str) -> None:
        """Programmatically select a nav item."""
        self._on_clicked(name)

    def set_theme(self, mode: ThemeMode) -> None:
        """Restyle for a resolved light/dark mode."""
        self._mode = mode
        self.setStyleSheet(_sidebar_style(palette_for(mode)))
        self._theme_btn.setText("Light" if mode is ThemeMode.DARK else "Dark")

    def _on_clicked(self, name: str) -> None:
        if name not in self._buttons:
            return
        self._current = name
        for key, btn in self._buttons.items():
            btn.setChecked(key == name)
        self.nav_changed.emit(name)


def _sidebar_style(c: dict[str, str]) -> str:
    # Nav buttons are checkable; the checked one is the active view.
    accent = COLORS["primary"]
    return f"""
NavSidebar {{ background-color: {c["sidebar_bg"]}; border-right: 1px solid {c["border"]}; }}
QLabel#brand {{
    color: {accent}; font-size: 12px; font-weight: 700; letter-spacing: 1px;
    background-color: {c["bg"]}; border: 1px solid {c["border"]};
    border-radius: 10px; padding: 8px 6px;
}}
QPushButton {{
    background-color: transparent; color: {c["text_muted"]};
    border: 1px solid transparent; border-radius: 8px;
    font-size: 11px; text-align: left; padding: 6px 8px;
}}
QPushButton:hover {{ background-color: {c["bg"]}; border-color: {c["border"]}; color: {c["text"]}; }}
QPushButton:checked {{
    background-color: {c["bg"]}; color: {c["text"]}; font-weight: 600;
    border: 1px solid {c["border"]}; border-left: 3px solid {accent};
}}
"""
