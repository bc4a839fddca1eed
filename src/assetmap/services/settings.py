"""Settings service and the theme preference shared by every view."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from assetmap.data.protocols import BackendError
from assetmap.models.settings import AppSettings, ThemeMode

if TYPE_CHECKING:
    from assetmap.data.protocols import BackendProtocol

ThemeListener = Callable[[ThemeMode], None]


class ThemePreference:
    """Single source of truth for the theme, injected into consumers."""

    def __init__(self, mode: ThemeMode = ThemeMode.DARK) -> None:
        self._mode = mode
        self._listeners: list[ThemeListener] = []

    def get(self) -> ThemeMode:
        return self._mode

    def set(self, mode: ThemeMode | str) -> None:
        mode = ThemeMode(mode)
        if mode is self._mode:
            return
        self._mode = mode
        for listener in list(self._listeners):
            listener(mode)

    def effective(self, system_dark: bool) -> ThemeMode:
        """Resolve ``system`` to light or dark."""
        if self._mode is ThemeMode.SYSTEM:
            return ThemeMode.DARK if system_dark else ThemeMode.LIGHT
        return self._mode

    def subscribe(self, listener: ThemeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose


class SettingsService:
    def __init__(self, backend: BackendProtocol, theme: ThemePreference) -> None:
        self._backend = backend
        self.theme = theme

    async def get(self) -> Result[AppSettings, str]:
        """Load stored settings; the theme preference is left untouched."""
        try:
            return Ok(await self._backend.get_settings())
        except BackendError as exc:
            return Err(f"Failed to load settings: {exc.message}")
        except Exception as exc:
            return Err(f"Failed to load settings: {exc}")

    async def save(self, settings: AppSettings) -> Result[None, str]:
        """Persist settings; the current theme preference always wins."""
        settings = settings.model_copy(update={"theme": self.theme.get()})
        try:
            await self._backend.save_settings(settings)
        except BackendError as exc:
            return Err(f"Failed to save settings: {exc.message}")
        except Exception as exc:
            return Err(f"Failed to save settings: {exc}")
        return Ok(None)
