"""Rounded chip button for one syntax hint or example query."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QPushButton, QWidget

from assetmap.models.dialects import SyntaxHint


class HintChip(QPushButton):
    """Clicking the chip emits the hint's example fragment."""

    picked = Signal(str)

    def __init__(self, hint: SyntaxHint, color: str, parent: QWidget | None = None) -> None:
        super().__init__(hint.example, parent)
        self.hint = hint
        self._color = color
        self.setToolTip(hint.description)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.clicked.connect(lambda _checked=False: self.picked.emit(self.hint.example))
        self._apply_style()

    def _apply_style(self) -> None:
        self.setStyleSheet(
            "QPushButton { "
            f"background-color: transparent; color: {self._color}; "
            f"border: 1px solid {self._color}; border-radius: 12px; "
            "padding: 3px 10px; font-size: 11px; font-weight: 500; }"
            "QPushButton:hover { "
            f"background-color: {self._color}; color: white; }}"
        )
