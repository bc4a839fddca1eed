"""Local implementation of the backend command surface.

History and settings live in SQLite. Searches go through per-platform
``SearchGateway`` objects and conversions through a ``QueryTranslator``;
neither is shipped here, so a missing collaborator surfaces as a
``BackendError`` on the command that needs it.
"""

from __future__ import annotations

import asyncio
import csv
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from assetmap.data.protocols import BackendError
from assetmap.models.conversion import ConversionResult
from assetmap.models.platforms import ALL_PLATFORMS, Platform, parse_platform
from assetmap.models.progress import LogType, ProgressEvent, ProgressStatus
from assetmap.models.search import ExportRequest, SearchResultPage, TimeRange

if TYPE_CHECKING:
    from assetmap.config import Config
    from assetmap.data.protocols import KeyStore, QueryTranslator, SearchGateway
    from assetmap.data.repositories import HistoryRepository, SettingsRepository
    from assetmap.models.history import HistoryRecord
    from assetmap.models.settings import AppSettings
    from assetmap.services.events import ProgressEventBus

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]

HISTORY_CSV_HEADER = ("ID", "Platform", "Query", "Results", "Time", "Status", "Error")


def export_stamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def write_rows_csv(path: Path, rows: list[dict[str, Any]]) -> None:
    """Write rows to CSV; the header is the key set of the first row."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fields = list(rows[0].keys()) if rows else []
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(fields)
        for row in rows:
            writer.writerow([_cell(row.get(field)) for field in fields])


class LocalBackend:
    """Backend over SQLite repositories with an in-process export runner."""

    def __init__(
        self,
        history: HistoryRepository,
        settings: SettingsRepository,
        bus: ProgressEventBus,
        config: Config,
        *,
        gateways: Mapping[Platform, SearchGateway] | None = None,
        translator: QueryTranslator | None = None,
        key_store: KeyStore | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._history = history
        self._settings = settings
        self._bus = bus
        self._config = config
        self._gateways = dict(gateways or {})
        self._translator = translator
        self._key_store = key_store
        self._sleep = sleep

    # ── Collaborators ──

    def _gateway(self, platform: str) -> SearchGateway:
        try:
            key = parse_platform(platform)
        except ValueError as exc:
            raise BackendError(f"Unsupported platform: {platform}") from exc
        gateway = self._gateways.get(key)
        if gateway is None:
            raise BackendError(f"No search client configured for {key}")
        return gateway

    def _require_translator(self) -> QueryTranslator:
        if self._translator is None:
            raise BackendError("No query translator configured")
        return self._translator

    async def _load_settings(self) -> AppSettings:
        try:
            return await self._settings.load()
        except Exception as exc:
            raise BackendError(f"Failed to load settings: {exc}") from exc

    async def _record(self, platform: str, query: str, count: int, **fields: Any) -> None:
        try:
            await self._history.add(platform, query, count, **fields)
        except Exception as exc:
            raise BackendError(f"Failed to record history: {exc}") from exc

    async def _export_dir(self) -> Path:
        settings = await self._load_settings()
        if settings.export_path:
            return Path(settings.export_path).expanduser()
        return self._config.export_dir

    # ── Search ──

    async def search_assets(
        self, platform: str, query: str, page: int, page_size: int
    ) -> SearchResultPage:
        """Search one page and record the outcome in history."""
        gateway = self._gateway(platform)
        try:
            result = await gateway.search(query, page, page_size)
        except Exception as exc:
            message = exc.message if isinstance(exc, BackendError) else str(exc)
            await self._record(platform, query, 0, success=False, error_message=message)
            raise BackendError(message) from exc
        await self._record(platform, query, result.total, success=True)
        return result

    # ── Export ──

    def _emit(self, task_id: str, percent: float, status_text: str, **fields: Any) -> None:
        self._bus.emit(
            ProgressEvent(task_id=task_id, percent=percent, status_text=status_text, **fields)
        )

    async def _fetch_page(
        self, request: ExportRequest, page: int, fetched: int
    ) -> SearchResultPage:
        """Fetch one page, retrying with a delay; raises after the last attempt."""
        gateway = self._gateway(request.platform)
        retries = max(1, self._config.page_retries)
        percent = (page - 1) / request.pages * 100
        attempt = 1
        while True:
            try:
                return await gateway.search(
                    request.query,
                    page,
                    request.page_size,
                    request.time_range,
                    request.start_date,
                    request.end_date,
                )
            except Exception as exc:
                message = exc.message if isinstance(exc, BackendError) else str(exc)
                if attempt >= retries:
                    raise BackendError(message) from exc
                logger.warning(
                    "Page %d of %s failed (%d/%d): %s",
                    page,
                    request.task_id,
                    attempt,
                    retries,
                    message,
                )
                self._emit(
                    request.task_id,
                    percent,
                    f"Page {page} failed, retrying ({attempt}/{retries})...",
                    log_message=f"Page {page} failed: {message}, retrying...",
                    log_type=LogType.WARNING,
                    current_page=page,
                    total_pages=request.pages,
                    fetched_results=fetched,
                )
                await self._sleep(self._config.retry_delay_s)
                attempt += 1

    async def export_results_with_progress(self, request: ExportRequest) -> str:
        """Run a paged export, streaming progress events for ``request.task_id``."""
        task_id = request.task_id
        pages = request.pages
        self._emit(
            task_id,
            0,
            f"Preparing export [{request.platform}]...",
            log_message=(
                f"Export started: platform={request.platform}, pages={pages}, "
                f"page_size={request.page_size}"
            ),
            log_type=LogType.INFO,
            current_page=0,
            total_pages=pages,
            fetched_results=0,
        )

        rows: list[dict[str, Any]] = []
        for page in range(1, pages + 1):
            self._emit(
                task_id,
                (page - 1) / pages * 100,
                f"Fetching page {page}/{pages}...",
                log_message=f"Requesting page {page}...",
                log_type=LogType.INFO,
                current_page=page,
                total_pages=pages,
                fetched_results=len(rows),
            )
            try:
                result = await self._fetch_page(request, page, len(rows))
            except BackendError as exc:
                self._emit(
                    task_id,
                    (page - 1) / pages * 100,
                    f"Page {page} failed, retries exhausted",
                    status=ProgressStatus.ERROR if not rows else ProgressStatus.RUNNING,
                    log_message=f"Page {page} failed: {exc.message}",
                    log_type=LogType.ERROR,
                    current_page=page,
                    total_pages=pages,
                    fetched_results=len(rows),
                )
                if rows:
                    logger.warning(
                        "Export %s stopped at page %d, keeping %d rows", task_id, page, len(rows)
                    )
                    break
                raise BackendError(f"Export failed: {exc.message}") from exc

            rows.extend(item.model_dump() for item in result.results)
            self._emit(
                task_id,
                page / pages * 100,
                f"Page {page}/{pages} done, {len(rows)} rows fetched",
                log_message=f"Page {page} succeeded: {len(result.results)} rows",
                log_type=LogType.SUCCESS,
                current_page=page,
                total_pages=pages,
                total_results=result.total,
                fetched_results=len(rows),
            )
            if page < pages:
                await self._sleep(self._config.page_delay_s)

        if not rows:
            self._emit(
                task_id,
                100,
                "No data retrieved",
                status=ProgressStatus.ERROR,
                log_message="Export failed: no data",
                log_type=LogType.ERROR,
                total_pages=pages,
                total_results=0,
                fetched_results=0,
            )
            raise BackendError("No data retrieved")

        self._emit(
            task_id,
            95,
            "Saving CSV file...",
            log_message=f"Writing {len(rows)} rows to CSV...",
            log_type=LogType.INFO,
            total_pages=pages,
            total_results=len(rows),
            fetched_results=len(rows),
        )
        path = await self._export_dir() / f"{request.platform}_export_{export_stamp()}.csv"
        try:
            write_rows_csv(path, rows)
        except OSError as exc:
            raise BackendError(f"Failed to write CSV: {exc}") from exc

        self._emit(
            task_id,
            100,
            f"Export complete, {len(rows)} rows",
            status=ProgressStatus.SUCCESS,
            log_message=f"File saved: {path}",
            log_type=LogType.SUCCESS,
            current_page=pages,
            total_pages=pages,
            total_results=len(rows),
            fetched_results=len(rows),
        )
        logger.info("Export %s wrote %d rows to %s", task_id, len(rows), path)
        return str(path)

    async def export_all_platforms(
        self,
        query: str,
        pages: int,
        page_size: int,
        time_range: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> None:
        """Export every configured platform into one CSV, skipping failures.

        The query is written in the default platform's dialect and adapted to
        each other platform when a translator is present; platforms that fail
        to convert or fetch are skipped.
        """
        if time_range != TimeRange.CUSTOM:
            start_date = end_date = None
        source = (await self._load_settings()).default_platform
        rows: list[dict[str, Any]] = []
        for platform in ALL_PLATFORMS:
            if platform not in self._gateways:
                continue
            platform_query = query
            if self._translator is not None and platform != source:
                try:
                    platform_query = self._translator.convert(query, source, platform)
                except Exception as exc:
                    logger.warning("Skipping %s: conversion failed: %s", platform, exc)
                    continue
            try:
                result = await self._gateways[platform].search(
                    platform_query, 1, pages * page_size, time_range, start_date, end_date
                )
            except Exception as exc:
                logger.warning("Skipping %s: search failed: %s", platform, exc)
                continue
            rows.extend({**item.model_dump(), "platform": str(platform)} for item in result.results)

        if not rows:
            raise BackendError("No platform returned data")
        path = await self._export_dir() / f"all_platforms_export_{export_stamp()}.csv"
        try:
            write_rows_csv(path, rows)
        except OSError as exc:
            raise BackendError(f"Failed to write CSV: {exc}") from exc
        logger.info("All-platform export wrote %d rows to %s", len(rows), path)

    # ── History ──

    async def get_query_history(self) -> list[HistoryRecord]:
        return await self._history.list_all()

    async def delete_query_history(self, record_id: str) -> None:
        await self._history.delete(record_id)

    async def clear_all_history(self) -> None:
        await self._history.clear()

    async def export_query_history(self, export_path: str) -> str:
        records = await self._history.list_all()
        if not records:
            raise BackendError("No history to export")
        path = Path(export_path).expanduser() / f"query_history_{export_stamp()}.csv"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="", encoding="utf-8") as fh:
                writer = csv.writer(fh)
                writer.writerow(HISTORY_CSV_HEADER)
                for record in records:
                    writer.writerow(
                        [
                            record.id,
                            record.platform,
                            record.query,
                            record.results_count,
                            record.timestamp,
                            "success" if record.success else "failed",
                            record.error_message or "",
                        ]
                    )
        except OSError as exc:
            raise BackendError(f"Failed to write CSV: {exc}") from exc
        return str(path)

    # ── Translation ──

    async def get_supported_platforms(self) -> list[str]:
        translator = self._require_translator()
        try:
            return list(translator.supported_platforms())
        except Exception as exc:
            raise BackendError(f"Failed to list platforms: {exc}") from exc

    async def validate_query_syntax(self, query: str, platform: str) -> None:
        translator = self._require_translator()
        try:
            translator.validate(query, platform)
        except Exception as exc:
            raise BackendError(str(exc)) from exc

    async def convert_query(self, query: str, from_platform: str, to_platform: str) -> str:
        translator = self._require_translator()
        try:
            return translator.convert(query, from_platform, to_platform)
        except Exception as exc:
            raise BackendError(str(exc)) from exc

    async def convert_query_to_all(self, query: str, from_platform: str) -> list[ConversionResult]:
        """Convert to every supported platform other than the source."""
        translator = self._require_translator()
        results: list[ConversionResult] = []
        for target in translator.supported_platforms():
            if target == from_platform:
                continue
            try:
                converted = translator.convert(query, from_platform, target)
            except Exception as exc:
                raise BackendError(f"{target}: {exc}") from exc
            results.append(ConversionResult(platform=target, query=converted))
        return results

    # ── Keys and settings ──

    async def add_api_key(self, platform: str, api_key: str, email: str | None = None) -> None:
        if self._key_store is None:
            raise BackendError("No key store configured")
        if platform == Platform.FOFA and not email:
            raise BackendError("FOFA keys require an email")
        try:
            self._key_store.add_key(platform, api_key, email)
        except Exception as exc:
            raise BackendError(str(exc)) from exc

    async def get_settings(self) -> AppSettings:
        return await self._load_settings()

    async def save_settings(self, settings: AppSettings) -> None:
        try:
            await self._settings.save(settings)
        except Exception as exc:
            raise BackendError(f"Failed to save settings: {exc}") from exc
