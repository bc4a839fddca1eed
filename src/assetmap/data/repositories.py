"""Repository layer for query history and settings persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from assetmap.models.history import HistoryRecord
from assetmap.models.settings import AppSettings

if TYPE_CHECKING:
    from aiosqlite import Row

    from assetmap.data.db import Database


class HistoryRepository:
    """SQL repository for query history, newest first, capped at ``limit`` rows."""

    def __init__(self, db: Database, limit: int = 1000) -> None:
        self._db = db
        self._limit = limit

    async def add(
        self,
        platform: str,
        query: str,
        results_count: int,
        success: bool,
        error_message: str | None = None,
    ) -> HistoryRecord:
        platform = str(platform)
        now = datetime.now(tz=UTC)
        millis = int(now.timestamp() * 1000)
        record_id = f"{platform}_{millis}"
        suffix = 0
        while await self._db.fetch_value(
            "SELECT 1 FROM query_history WHERE id = ?", (record_id,)
        ):
            suffix += 1
            record_id = f"{platform}_{millis}_{suffix}"
        record = HistoryRecord(
            id=record_id,
            platform=platform,
            query=query,
            results_count=results_count,
            timestamp=now.isoformat(),
            success=success,
            error_message=error_message,
        )
        await self._db.execute(
            """INSERT INTO query_history
               (id, platform, query, results_count, timestamp, success, error_message)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                record.id,
                record.platform,
                record.query,
                record.results_count,
                record.timestamp,
                int(record.success),
                record.error_message,
            ),
        )
        await self._db.execute(
            """DELETE FROM query_history WHERE id NOT IN (
                   SELECT id FROM query_history ORDER BY seq DESC LIMIT ?
               )""",
            (self._limit,),
        )
        await self._db.commit()
        return record

    async def list_all(self) -> list[HistoryRecord]:
        rows = await self._db.fetch_all("SELECT * FROM query_history ORDER BY seq DESC")
        return [_row_to_record(row) for row in rows]

    async def delete(self, record_id: str) -> None:
        await self._db.execute("DELETE FROM query_history WHERE id = ?", (record_id,))
        await self._db.commit()

    async def clear(self) -> None:
        await self._db.execute("DELETE FROM query_history")
        await self._db.commit()


class SettingsRepository:
    """Key/value settings table holding one JSON-encoded AppSettings document."""

    _KEY = "app_settings"

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(self) -> AppSettings:
        raw = await self._db.fetch_value("SELECT value FROM settings WHERE key = ?", (self._KEY,))
        if raw is None:
            return AppSettings()
        return AppSettings.model_validate_json(raw)

    async def save(self, settings: AppSettings) -> None:
        await self._db.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (self._KEY, settings.model_dump_json(by_alias=True)),
        )
        await self._db.commit()


def _row_to_record(row: Row) -> HistoryRecord:
    return HistoryRecord(
        id=row["id"],
        platform=row["platform"],
        query=row["query"],
        results_count=int(row["results_count"] or 0),
        timestamp=row["timestamp"],
        success=bool(row["success"]),
        error_message=row["error_message"],
    )
