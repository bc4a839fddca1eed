"""Service container with DI wiring."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from result import Err, Ok

from assetmap.data.backend import LocalBackend
from assetmap.data.db import Database
from assetmap.data.repositories import HistoryRepository, SettingsRepository
from assetmap.services.events import ProgressEventBus
from assetmap.services.history import HistoryService
from assetmap.services.jobs import JobCoordinator
from assetmap.services.keys import KeyService
from assetmap.services.progress import ProgressTracker
from assetmap.services.settings import SettingsService, ThemePreference
from assetmap.services.translation import QueryTranslationFacade

if TYPE_CHECKING:
    from assetmap.config import Config
    from assetmap.data.protocols import BackendProtocol, KeyStore, QueryTranslator, SearchGateway
    from assetmap.models.platforms import Platform

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Holds all application services. Built once at startup, immutable."""

    config: Config
    db: Database
    backend: BackendProtocol
    bus: ProgressEventBus
    theme: ThemePreference
    history_service: HistoryService
    translation_service: QueryTranslationFacade
    key_service: KeyService
    settings_service: SettingsService

    @classmethod
    async def create(
        cls,
        config: Config,
        *,
        gateways: Mapping[Platform, SearchGateway] | None = None,
        translator: QueryTranslator | None = None,
        key_store: KeyStore | None = None,
    ) -> ServiceContainer:
        """Async factory that wires all dependencies."""
        db = Database(config.db_path)
        await db.__aenter__()

        bus = ProgressEventBus()
        settings_repo = SettingsRepository(db)
        backend = LocalBackend(
            HistoryRepository(db, limit=config.history_limit),
            settings_repo,
            bus,
            config,
            gateways=gateways,
            translator=translator,
            key_store=key_store,
        )
        theme = ThemePreference()
        settings_service = SettingsService(backend, theme)
        match await settings_service.get():
            case Ok(settings):
                theme.set(settings.theme)
            case Err(message):
                logger.warning("Starting with the default theme: %s", message)

        return cls(
            config=config,
            db=db,
            backend=backend,
            bus=bus,
            theme=theme,
            history_service=HistoryService(backend),
            translation_service=QueryTranslationFacade(backend),
            key_service=KeyService(backend),
            settings_service=settings_service,
        )

    def new_job_coordinator(self) -> JobCoordinator:
        """Each view owns its coordinator so busy flags stay per view."""
        return JobCoordinator(self.backend, self.bus)

    def new_tracker(self, title: str = "", *, auto_dismiss: bool = False) -> ProgressTracker:
        return ProgressTracker(
            title, auto_dismiss=auto_dismiss, dismiss_delay_s=self.config.auto_dismiss_s
        )

    async def close(self) -> None:
        """Shut down all services."""
        await self.db.__aexit__(None, None, None)
