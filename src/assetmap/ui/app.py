"""PySide6 application bootstrap: main window, service init, run_app()."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from PySide6.QtCore import QSettings, Qt
from PySide6.QtGui import QCloseEvent, QGuiApplication, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QStackedWidget,
    QStatusBar,
    QWidget,
)
from result import Ok

from assetmap.models.settings import ThemeMode
from assetmap.services.container import ServiceContainer
from assetmap.ui.async_bridge import (
    Subscriptions,
    async_slot,
    cancel_all_tasks,
    create_event_loop,
    schedule,
)
from assetmap.ui.panels.nav_sidebar import NAV_ITEMS, NavSidebar
from assetmap.ui.theme import build_stylesheet
from assetmap.ui.views.converter_view import ConverterView
from assetmap.ui.views.export_view import ExportView
from assetmap.ui.views.history_view import HistoryView
from assetmap.ui.views.query_view import QueryView
from assetmap.ui.views.settings_view import SettingsView

if TYPE_CHECKING:
    from assetmap.config import Config

logger = logging.getLogger(__name__)


def system_prefers_dark() -> bool:
    """Whether the desktop color scheme is dark."""
    hints = QGuiApplication.styleHints()
    return hints.colorScheme() == Qt.ColorScheme.Dark


class AssetMapWindow(QMainWindow):
    """Sidebar navigation over stacked views, built once services are ready."""

    def __init__(self, config: Config) -> None:
        super().__init__()
        self._config = config
        self._services: ServiceContainer | None = None
        self._subs = Subscriptions()
        self._views: dict[str, QWidget] = {}
        self._shutdown_in_progress = False

        self.setWindowTitle("AssetMap")
        self.setMinimumSize(1100, 700)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._sidebar = NavSidebar()
        layout.addWidget(self._sidebar)

        self._stack = QStackedWidget()
        self._placeholder = QLabel("Loading...")
        self._placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._stack.addWidget(self._placeholder)
        layout.addWidget(self._stack, stretch=1)

        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_label = QLabel("Starting...")
        self._status_bar.addWidget(self._status_label)

        self._sidebar.nav_changed.connect(self._on_nav_changed)
        self._sidebar.theme_toggle_requested.connect(self._on_theme_toggle)

        for number, (name, _label, _icon) in enumerate(NAV_ITEMS, start=1):
            QShortcut(
                QKeySequence(f"Ctrl+{number}"),
                self,
                lambda n=name: self._sidebar.select_nav(n),
            )

        self._restore_state()

    async def initialize(self) -> None:
        """Build the service container and the views that depend on it."""
        try:
            logger.info("Starting AssetMap, building service container...")
            self._services = await ServiceContainer.create(self._config)
        except Exception:
            logger.exception("Application startup failed")
            self._status_label.setText("Startup failed. Check terminal logs.")
            return

        services = self._services
        query_view = QueryView(services)
        history_view = HistoryView(services)
        self._views = {
            "query": query_view,
            "export": ExportView(services),
            "history": history_view,
            "converter": ConverterView(services),
            "settings": SettingsView(services),
        }
        for view in self._views.values():
            self._stack.addWidget(view)
        history_view.rerun_requested.connect(self._on_rerun_requested)

        self._subs.add(services.theme.subscribe(lambda _mode: self._apply_theme()))
        self._apply_theme()

        settings = await services.settings_service.get()
        if isinstance(settings, Ok):
            query_view.select_platform(settings.ok_value.default_platform)
        self._on_nav_changed(self._sidebar.current)
        self._status_label.setText(f"Database: {self._config.db_path}")

    def _on_nav_changed(self, name: str) -> None:
        view = self._views.get(name)
        if view is None:
            return
        self._stack.setCurrentWidget(view)
        if isinstance(view, HistoryView | SettingsView):
            view.reload()

    def _on_rerun_requested(self, platform: str, query: str) -> None:
        view = self._views.get("query")
        if isinstance(view, QueryView):
            self._sidebar.select_nav("query")
            view.rerun(platform, query)

    # ── Theme ──

    def _effective_theme(self) -> ThemeMode:
        if self._services is None:
            return ThemeMode.DARK
        return self._services.theme.effective(system_prefers_dark())

    def _apply_theme(self) -> None:
        mode = self._effective_theme()
        app = QApplication.instance()
        if isinstance(app, QApplication):
            app.setStyleSheet(build_stylesheet(mode))
        self._sidebar.set_theme(mode)

    @async_slot
    async def _on_theme_toggle(self) -> None:
        if self._services is None:
            return
        services = self._services
        current = self._effective_theme()
        services.theme.set(ThemeMode.LIGHT if current is ThemeMode.DARK else ThemeMode.DARK)
        settings = await services.settings_service.get()
        if isinstance(settings, Ok):
            await services.settings_service.save(settings.ok_value)

    # ── Lifecycle ──

    def _restore_state(self) -> None:
        settings = QSettings("AssetMap", "AssetMap")
        geometry = settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)  # type: ignore[arg-type]

    def closeEvent(self, event: QCloseEvent) -> None:
        """Save geometry, dispose views and close services before quitting."""
        settings = QSettings("AssetMap", "AssetMap")
        settings.setValue("geometry", self.saveGeometry())
        settings.sync()

        if self._shutdown_in_progress or self._services is None:
            event.accept()
            self._dispose_views()
            return

        self._shutdown_in_progress = True
        event.ignore()
        self._status_label.setText("Shutting down...")
        schedule(self._shutdown_and_quit())

    def _dispose_views(self) -> None:
        self._subs.dispose()
        for view in self._views.values():
            dispose = getattr(view, "dispose", None)
            if dispose is not None:
                dispose()

    async def _shutdown_and_quit(self) -> None:
        try:
            cancel_all_tasks()
            self._dispose_views()
            if self._services is not None:
                await self._services.close()
                self._services = None
        except Exception:
            logger.exception("Error while shutting down services")
        finally:
            app = QApplication.instance()
            if app is not None:
                app.quit()


def run_app(config: Config) -> None:
    """Entry point: create QApplication, event loop, main window, and run."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    app = QApplication(sys.argv)
    app.setApplicationName("AssetMap")
    app.setOrganizationName("AssetMap")
    app.setStyleSheet(build_stylesheet())

    loop = create_event_loop(app)

    window = AssetMapWindow(config)
    window.show()

    schedule(window.initialize())

    with loop:
        loop.run_forever()
