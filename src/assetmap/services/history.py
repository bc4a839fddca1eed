"""History filtering, forwarding and export-from-history replay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from assetmap.data.protocols import BackendError
from assetmap.models.history import ALL_PLATFORMS_FILTER, HistoryRecord
from assetmap.models.search import REPLAY_PAGE_SIZE
from assetmap.services.jobs import pages_for

if TYPE_CHECKING:
    from assetmap.data.protocols import BackendProtocol
    from assetmap.services.jobs import JobCoordinator
    from assetmap.services.progress import ProgressTracker

logger = logging.getLogger(__name__)


def filter_records(
    records: list[HistoryRecord],
    platform: str = ALL_PLATFORMS_FILTER,
    keyword: str = "",
) -> list[HistoryRecord]:
    """Filter by platform equality and keyword substring over query or platform."""
    filtered = list(records)
    if platform != ALL_PLATFORMS_FILTER:
        filtered = [r for r in filtered if r.platform == platform]
    if keyword:
        needle = keyword.lower()
        filtered = [
            r for r in filtered if needle in r.query.lower() or needle in r.platform.lower()
        ]
    return filtered


class HistoryService:
    """Holds the loaded history list and forwards mutations to the backend.

    A failed forward leaves the held list unchanged; a successful one
    reloads it from the backend rather than patching it locally.
    """

    def __init__(self, backend: BackendProtocol) -> None:
        self._backend = backend
        self._records: list[HistoryRecord] = []

    @property
    def records(self) -> list[HistoryRecord]:
        return list(self._records)

    async def load(self) -> Result[list[HistoryRecord], str]:
        try:
            self._records = await self._backend.get_query_history()
        except BackendError as exc:
            return Err(f"Failed to load history: {exc.message}")
        except Exception as exc:
            logger.exception("Loading history failed")
            return Err(f"Failed to load history: {exc}")
        return Ok(self.records)

    def filtered(
        self, platform: str = ALL_PLATFORMS_FILTER, keyword: str = ""
    ) -> list[HistoryRecord]:
        return filter_records(self._records, platform, keyword)

    async def delete(self, record_id: str) -> Result[None, str]:
        try:
            await self._backend.delete_query_history(record_id)
        except BackendError as exc:
            return Err(f"Delete failed: {exc.message}")
        except Exception as exc:
            return Err(f"Delete failed: {exc}")
        reload = await self.load()
        return Err(reload.err_value) if isinstance(reload, Err) else Ok(None)

    async def clear(self) -> Result[None, str]:
        try:
            await self._backend.clear_all_history()
        except BackendError as exc:
            return Err(f"Clear failed: {exc.message}")
        except Exception as exc:
            return Err(f"Clear failed: {exc}")
        reload = await self.load()
        return Err(reload.err_value) if isinstance(reload, Err) else Ok(None)

    async def export_history(self, export_path: str) -> Result[str, str]:
        if not export_path:
            return Err("No export directory selected")
        try:
            return Ok(await self._backend.export_query_history(export_path))
        except BackendError as exc:
            return Err(f"Export failed: {exc.message}")
        except Exception as exc:
            return Err(f"Export failed: {exc}")

    async def export_record_assets(
        self,
        record: HistoryRecord,
        coordinator: JobCoordinator,
        tracker: ProgressTracker,
    ) -> Result[str, str]:
        """Re-run a historical query as an export of all of its result pages.

        The tracker should be an auto-dismissing one; when the call itself
        fails it is closed straight away and the error returned.
        """
        pages = pages_for(record.results_count, REPLAY_PAGE_SIZE)
        if not record.success or pages == 0:
            return Err("Record has no results to export")
        logger.info(
            "Replaying %s: %d results, %d pages of %d",
            record.id,
            record.results_count,
            pages,
            REPLAY_PAGE_SIZE,
        )
        result = await coordinator.export(
            record.platform,
            record.query,
            pages,
            REPLAY_PAGE_SIZE,
            tracker,
            task_id=coordinator.new_task_id(platform=record.platform),
        )
        if isinstance(result, Err):
            tracker.close()
        return result
