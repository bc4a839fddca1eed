"""aiosqlite connection manager for the history and settings store."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# Each entry upgrades the schema from version ``n - 1`` to ``n``.
MIGRATIONS: dict[int, str] = {
    1: """
CREATE TABLE IF NOT EXISTS query_history (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    platform TEXT NOT NULL,
    query TEXT NOT NULL,
    results_count INTEGER NOT NULL DEFAULT 0,
    timestamp TEXT NOT NULL,
    success INTEGER NOT NULL DEFAULT 1,
    error_message TEXT
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_history_platform ON query_history(platform);
""",
}

SCHEMA_VERSION = max(MIGRATIONS)


class Database:
    """Single aiosqlite connection; use as ``async with Database(path) as db``."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return str(self._db_path) == MEMORY

    async def __aenter__(self) -> Database:
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def connect(self) -> Database:
        if not self.in_memory:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self._db_path))
        self._conn.row_factory = aiosqlite.Row
        if not self.in_memory:
            await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._migrate()
        return self

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Database not connected. Use 'async with Database(path) as db:'"
            raise RuntimeError(msg)
        return self._conn

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        return await self.conn.execute(sql, params)

    async def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[aiosqlite.Row]:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchall()  # type: ignore[return-value]

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> aiosqlite.Row | None:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchone()  # type: ignore[return-value]

    async def fetch_value(self, sql: str, params: tuple[Any, ...] = ()) -> Any:
        """First column of the first row, or None when there is no row."""
        row = await self.fetch_one(sql, params)
        return None if row is None else row[0]

    async def commit(self) -> None:
        await self.conn.commit()

    async def schema_version(self) -> int:
        return int(await self.fetch_value("PRAGMA user_version") or 0)

    async def _migrate(self) -> None:
        """Apply pending migrations in order, stamping ``user_version`` after each."""
        current = await self.schema_version()
        if current > SCHEMA_VERSION:
            logger.warning(
                "Database %s is at schema %d, newer than supported %d",
                self._db_path,
                current,
                SCHEMA_VERSION,
            )
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            logger.info("Migrating %s to schema version %d", self._db_path, version)
            await self.conn.executescript(MIGRATIONS[version])
            await self.conn.execute(f"PRAGMA user_version = {version}")
            await self.conn.commit()
