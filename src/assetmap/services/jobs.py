"""Paged search and export jobs feeding a progress tracker."""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from assetmap.data.protocols import BackendError
from assetmap.models.platforms import Platform, parse_platform
from assetmap.models.search import (
    REPLAY_PAGE_SIZE,
    ExportRequest,
    SearchResultPage,
    Task,
    TaskKind,
    TimeRange,
)

if TYPE_CHECKING:
    from assetmap.data.protocols import BackendProtocol
    from assetmap.services.events import ProgressEventBus
    from assetmap.services.progress import ProgressTracker

logger = logging.getLogger(__name__)


def pages_for(results_count: int, page_size: int = REPLAY_PAGE_SIZE) -> int:
    """Number of pages needed to export ``results_count`` rows."""
    if results_count <= 0 or page_size <= 0:
        return 0
    return math.ceil(results_count / page_size)


class JobCoordinator:
    """Starts search/export tasks against the backend and drives a tracker.

    ``busy`` is set for the duration of a call; a second call made while
    busy is refused so one tracker session never sees two live tasks.
    """

    def __init__(self, backend: BackendProtocol, bus: ProgressEventBus) -> None:
        self._backend = backend
        self._bus = bus
        self._busy = False
        self._last_ms = 0
        self.page = SearchResultPage()
        self.current_task: Task | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    def clear_page(self) -> None:
        """Drop the held page, e.g. after a platform switch."""
        self.page = SearchResultPage()

    def new_task_id(self, prefix: str = "export", platform: str | None = None) -> str:
        """Return a task id unique within this process."""
        now_ms = max(int(time.time() * 1000), self._last_ms + 1)
        self._last_ms = now_ms
        if platform:
            return f"{prefix}_{platform}_{now_ms}"
        return f"{prefix}_{now_ms}"

    # ── Search ──

    async def search(
        self,
        platform: str | Platform,
        query: str,
        page: int = 1,
        page_size: int = 20,
        tracker: ProgressTracker | None = None,
    ) -> Result[SearchResultPage, str]:
        """Fetch one page, replacing the held page on success."""
        platform = parse_platform(platform)
        if not query.strip():
            return Err("Query cannot be empty")
        if self._busy:
            return Err("Another task is still running")

        task_id = self.new_task_id("search")
        self.current_task = Task(
            task_id=task_id, kind=TaskKind.SEARCH, platform=platform, query=query
        )
        if tracker is not None:
            tracker.open(
                task_id,
                status_text=f"Querying [{platform.upper()}] page {page}...",
                log_message=f"Search: platform={platform}, page={page}, page_size={page_size}",
            )
            tracker.set_progress(30)

        self._busy = True
        try:
            if tracker is not None:
                tracker.set_progress(60)
            result_page = await self._backend.search_assets(platform, query, page, page_size)
        except BackendError as exc:
            logger.warning("Search on %s failed: %s", platform, exc.message)
            if tracker is not None:
                tracker.set_progress(100)
                tracker.fail(f"Search failed: {exc.message}")
            return Err(exc.message)
        except Exception as exc:
            logger.exception("Search on %s raised", platform)
            if tracker is not None:
                tracker.set_progress(100)
                tracker.fail(f"Search failed: {exc}")
            return Err(f"Search failed: {exc}")
        finally:
            self._busy = False

        self.page = result_page
        if tracker is not None:
            tracker.complete(
                f"Done: {result_page.total} results, {len(result_page.results)} on this page",
                log_message=f"Search succeeded: {result_page.total} results",
            )
        return Ok(result_page)

    # ── Export ──

    async def export(
        self,
        platform: str | Platform,
        query: str,
        pages: int,
        page_size: int,
        tracker: ProgressTracker,
        *,
        time_range: TimeRange = TimeRange.ALL,
        start_date: str | None = None,
        end_date: str | None = None,
        task_id: str | None = None,
    ) -> Result[str, str]:
        """Run a single-platform export whose progress arrives on the event bus."""
        platform = parse_platform(platform)
        if not query.strip():
            return Err("Query cannot be empty")
        if pages <= 0:
            return Err("Nothing to export: zero pages")
        if self._busy:
            return Err("Another task is still running")

        if time_range is not TimeRange.CUSTOM or not (start_date and end_date):
            start_date = end_date = None
        request = ExportRequest(
            task_id=task_id or self.new_task_id(),
            platform=platform,
            query=query,
            pages=pages,
            page_size=page_size,
            time_range=time_range,
            start_date=start_date,
            end_date=end_date,
        )
        self.current_task = Task(
            task_id=request.task_id, kind=TaskKind.EXPORT, platform=platform, query=query
        )
        tracker.open(
            request.task_id,
            status_text="Preparing export...",
            log_message=f"Export started: platform={platform}, pages={pages}, query={query}",
        )
        dispose = self._bus.subscribe(tracker.apply, task_id=request.task_id)

        self._busy = True
        try:
            file_path = await self._backend.export_results_with_progress(request)
        except BackendError as exc:
            logger.warning("Export %s failed: %s", request.task_id, exc.message)
            tracker.fail(f"Export failed: {exc.message}")
            return Err(exc.message)
        except Exception as exc:
            logger.exception("Export %s raised", request.task_id)
            tracker.fail(f"Export failed: {exc}")
            return Err(f"Export failed: {exc}")
        finally:
            dispose()
            self._busy = False
        return Ok(file_path)

    async def export_current(
        self,
        platform: str | Platform,
        query: str,
        page_size: int,
        tracker: ProgressTracker,
    ) -> Result[str, str]:
        """Export the page currently held from the last search."""
        if not self.page.results:
            return Err("No results to export")
        return await self.export(platform, query, 1, page_size, tracker)

    async def export_all_platforms(
        self,
        query: str,
        pages: int,
        page_size: int,
        tracker: ProgressTracker,
        *,
        time_range: TimeRange = TimeRange.ALL,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Result[None, str]:
        """Export every platform in one backend call.

        This path has no per-task event contract, so the tracker gets exactly
        one synthetic 100 %/success update (or an error) when the call settles.
        """
        if not query.strip():
            return Err("Query cannot be empty")
        if pages <= 0:
            return Err("Nothing to export: zero pages")
        if self._busy:
            return Err("Another task is still running")

        if time_range is not TimeRange.CUSTOM or not (start_date and end_date):
            start_date = end_date = None
        task_id = self.new_task_id()
        self.current_task = Task(task_id=task_id, kind=TaskKind.EXPORT, platform=None, query=query)
        tracker.open(
            task_id,
            status_text="Exporting all platforms...",
            log_message=f"Export started: scope=all, pages={pages}",
        )

        self._busy = True
        try:
            await self._backend.export_all_platforms(
                query, pages, page_size, time_range, start_date, end_date
            )
        except BackendError as exc:
            logger.warning("All-platform export failed: %s", exc.message)
            tracker.fail(f"Export failed: {exc.message}")
            return Err(exc.message)
        except Exception as exc:
            logger.exception("All-platform export raised")
            tracker.fail(f"Export failed: {exc}")
            return Err(f"Export failed: {exc}")
        finally:
            self._busy = False

        tracker.complete("All platforms exported", log_message="All platforms exported")
        return Ok(None)
