"""Theme palettes, QSS stylesheet, and display formatting utilities."""

from __future__ import annotations

from datetime import UTC, datetime

from assetmap.models.platforms import PLATFORM_LABELS, parse_platform
from assetmap.models.progress import LogType
from assetmap.models.settings import ThemeMode

# ── Accent colors, shared by both palettes ──

COLORS = {
    "primary": "#2D7FF9",
    "primary_hover": "#1F66D1",
    "success": "#27AE60",
    "error": "#E74C3C",
    "warning": "#F39C12",
    "info": "#3498DB",
    "platform_hunter": "#E67E22",
    "platform_fofa": "#2D7FF9",
    "platform_quake": "#16A085",
    "platform_daydaymap": "#9B59B6",
}

# ── Surface palettes ──

PALETTES: dict[ThemeMode, dict[str, str]] = {
    ThemeMode.LIGHT: {
        "bg": "#FFFFFF",
        "panel_bg": "#FAFAFA",
        "sidebar_bg": "#F4F6F8",
        "border": "#E0E0E0",
        "text": "#1A1A1A",
        "text_muted": "#999999",
        "scroll": "#D0D0D0",
    },
    ThemeMode.DARK: {
        "bg": "#1E1F22",
        "panel_bg": "#26282C",
        "sidebar_bg": "#18191B",
        "border": "#3A3D42",
        "text": "#E6E6E6",
        "text_muted": "#8A8F98",
        "scroll": "#4A4E55",
    },
}

# ── Fonts ──

FONT_FAMILY = "'Segoe UI', 'PingFang SC', 'Microsoft YaHei', 'Noto Sans CJK SC', sans-serif"
MONO_FAMILY = "'JetBrains Mono', Consolas, 'DejaVu Sans Mono', monospace"


def palette_for(mode: ThemeMode) -> dict[str, str]:
    """Surface colors for a resolved (light or dark) mode."""
    if mode is ThemeMode.SYSTEM:
        mode = ThemeMode.DARK
    return PALETTES[mode]


# ── QSS ──


def build_stylesheet(mode: ThemeMode = ThemeMode.DARK) -> str:
    """Application-wide QSS for one palette; accent colors are shared."""
    c = {**palette_for(mode), **COLORS}
    return f"""
QWidget {{
    font-family: {FONT_FAMILY};
    font-size: 13px;
    color: {c["text"]};
    background-color: {c["bg"]};
}}
QMainWindow, QDialog {{
    background-color: {c["bg"]};
}}
QLabel, QCheckBox {{
    background: transparent;
}}
QStatusBar {{
    background-color: {c["panel_bg"]};
    color: {c["text_muted"]};
    border-top: 1px solid {c["border"]};
    font-size: 12px;
}}
QGroupBox {{
    border: 1px solid {c["border"]};
    border-radius: 8px;
    margin-top: 14px;
    padding: 12px 10px 8px 10px;
    font-weight: 600;
}}
QGroupBox::title {{
    subcontrol-origin: margin;
    left: 12px;
    padding: 0 4px;
}}

/* inputs */
QLineEdit, QPlainTextEdit, QComboBox, QDateEdit {{
    background-color: {c["panel_bg"]};
    border: 1px solid {c["border"]};
    border-radius: 4px;
    padding: 6px 10px;
}}
QLineEdit:focus, QPlainTextEdit:focus, QComboBox:focus, QDateEdit:focus {{
    border: 1px solid {c["primary"]};
}}
QLineEdit:disabled {{
    color: {c["text_muted"]};
}}

/* buttons */
QPushButton {{
    background-color: {c["panel_bg"]};
    border: 1px solid {c["border"]};
    border-radius: 4px;
    padding: 6px 14px;
}}
QPushButton:hover {{
    border: 1px solid {c["primary"]};
    color: {c["primary"]};
}}
QPushButton:pressed {{
    background-color: {c["border"]};
}}
QPushButton:disabled {{
    color: {c["text_muted"]};
    border-color: {c["border"]};
}}

/* platform tabs */
QTabBar::tab {{
    padding: 8px 18px;
    margin-right: 2px;
    color: {c["text_muted"]};
    border-bottom: 2px solid {c["border"]};
}}
QTabBar::tab:selected {{
    color: {c["text"]};
    border-bottom: 2px solid {c["primary"]};
    font-weight: 600;
}}

/* result tables and lists */
QTableWidget, QListWidget {{
    background-color: {c["panel_bg"]};
    alternate-background-color: {c["bg"]};
    border: 1px solid {c["border"]};
    gridline-color: {c["border"]};
    selection-background-color: {c["primary"]};
    selection-color: white;
}}
QHeaderView::section {{
    background-color: {c["bg"]};
    color: {c["text_muted"]};
    border: none;
    border-bottom: 1px solid {c["border"]};
    padding: 6px;
}}

/* progress dialog */
QProgressBar {{
    background-color: {c["panel_bg"]};
    border: 1px solid {c["border"]};
    border-radius: 4px;
    height: 16px;
    text-align: center;
}}
QProgressBar::chunk {{
    background-color: {c["primary"]};
    border-radius: 3px;
}}
QTextEdit#progressLog {{
    font-family: {MONO_FAMILY};
    font-size: 12px;
    background-color: {c["panel_bg"]};
    border: 1px solid {c["border"]};
}}

QScrollBar:vertical, QScrollBar:horizontal {{
    background: transparent;
    width: 8px;
    height: 8px;
}}
QScrollBar::handle {{
    background: {c["scroll"]};
    border-radius: 4px;
}}
QScrollBar::add-line, QScrollBar::sub-line {{
    width: 0;
    height: 0;
}}
"""


def primary_button_style() -> str:
    """QSS for the accent-colored call-to-action buttons."""
    return (
        f"QPushButton {{ background-color: {COLORS['primary']}; color: white; "
        f"border: none; border-radius: 4px; padding: 7px 18px; font-weight: 600; }} "
        f"QPushButton:hover {{ background-color: {COLORS['primary_hover']}; color: white; }} "
        f"QPushButton:disabled {{ background-color: #6B7280; }}"
    )


# ── Display helpers ──


def format_datetime(iso_str: str) -> str:
    """Show a stored ISO timestamp as local ``YYYY-MM-DD HH:MM:SS``.

    Naive timestamps are taken as UTC. Text that does not parse is shown
    cut to timestamp width instead of being rejected.
    """
    if not iso_str:
        return ""
    try:
        dt = datetime.fromisoformat(iso_str.strip())
    except ValueError:
        return iso_str[:19]
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_count(count: int) -> str:
    return f"{count:,}"


def platform_label(platform: str) -> str:
    """Map platform key to display label; unknown keys are shown as-is."""
    try:
        return PLATFORM_LABELS[parse_platform(platform)]
    except ValueError:
        return platform


def platform_color(platform: str) -> str:
    """Map platform key to its accent color."""
    return COLORS.get(f"platform_{platform.strip().lower()}", COLORS["primary"])


def log_color(log_type: LogType) -> str:
    match log_type:
        case LogType.SUCCESS:
            return COLORS["success"]
        case LogType.ERROR:
            return COLORS["error"]
        case LogType.WARNING:
            return COLORS["warning"]
        case _:
            return COLORS["info"]
