"""Tests for the local backend: search history, export runner and commands."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from result import Err

from assetmap.config import Config
from assetmap.data.backend import LocalBackend, export_stamp, write_rows_csv
from assetmap.data.db import Database
from assetmap.data.protocols import BackendError
from assetmap.data.repositories import HistoryRepository, SettingsRepository
from assetmap.models.platforms import Platform
from assetmap.models.progress import LogType, ProgressEvent, ProgressStatus
from assetmap.models.search import ExportRequest, SearchResultPage, TimeRange
from assetmap.models.settings import AppSettings
from assetmap.services.events import ProgressEventBus
from assetmap.services.jobs import JobCoordinator
from assetmap.services.progress import ProgressTracker
from conftest import make_page


class FakeGateway:
    """Scripted gateway: ``pages`` maps page number to a result or an exception."""

    def __init__(
        self,
        pages: dict[int, Any] | None = None,
        default: SearchResultPage | Exception | None = None,
    ) -> None:
        self.pages = pages or {}
        self.default = default if default is not None else make_page(0, 0)
        self.calls: list[tuple[Any, ...]] = []

    async def search(
        self,
        query: str,
        page: int,
        page_size: int,
        time_range: str = "all",
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> SearchResultPage:
        self.calls.append((query, page, page_size, time_range, start_date, end_date))
        outcome = self.pages.get(page, self.default)
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeTranslator:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()

    def supported_platforms(self) -> list[str]:
        return ["hunter", "fofa", "quake", "daydaymap"]

    def validate(self, query: str, platform: str) -> None:
        if query.count('"') % 2:
            raise ValueError("unbalanced quotes")

    def convert(self, query: str, from_platform: str, to_platform: str) -> str:
        if to_platform in self.fail_for:
            raise ValueError(f"cannot convert to {to_platform}")
        return f"{to_platform}:{query}"


class FakeKeyStore:
    def __init__(self) -> None:
        self.keys: list[tuple[str, str, str | None]] = []

    def add_key(self, platform: str, api_key: str, email: str | None = None) -> None:
        if api_key == "bad":
            raise ValueError("invalid key format")
        self.keys.append((platform, api_key, email))


@pytest.fixture
async def repos(in_memory_db: Database) -> tuple[HistoryRepository, SettingsRepository]:
    return HistoryRepository(in_memory_db), SettingsRepository(in_memory_db)


def _backend(
    repos: tuple[HistoryRepository, SettingsRepository],
    bus: ProgressEventBus,
    config: Config,
    **kwargs: Any,
) -> LocalBackend:
    history, settings = repos
    return LocalBackend(history, settings, bus, config, **kwargs)


def _collect(bus: ProgressEventBus) -> list[ProgressEvent]:
    events: list[ProgressEvent] = []
    bus.subscribe(events.append)
    return events


def _request(pages: int = 2, platform: Platform = Platform.FOFA) -> ExportRequest:
    return ExportRequest(
        task_id="export_1", platform=platform, query='title="x"', pages=pages, page_size=20
    )


def _read_csv(path: str) -> list[dict[str, str]]:
    with open(path, newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


# ── Helpers ──


def test_export_stamp_format() -> None:
    assert export_stamp(datetime(2024, 3, 5, 7, 8, 9)) == "20240305_070809"


def test_write_rows_csv_uses_first_row_keys(tmp_path: Path) -> None:
    path = tmp_path / "out" / "rows.csv"
    write_rows_csv(path, [{"ip": "1.1.1.1", "tags": ["a", "b"], "port": 80}, {"ip": "2.2.2.2"}])
    rows = _read_csv(str(path))
    assert rows[0] == {"ip": "1.1.1.1", "tags": '["a", "b"]', "port": "80"}
    assert rows[1] == {"ip": "2.2.2.2", "tags": "", "port": ""}


# ── Search ──


@pytest.mark.asyncio
async def test_search_records_history(repos, bus: ProgressEventBus, test_config: Config) -> None:
    gateway = FakeGateway(default=make_page(42, 3))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})

    page = await backend.search_assets("fofa", 'port="80"', 1, 20)

    assert page.total == 42
    history = await backend.get_query_history()
    assert [(r.platform, r.results_count, r.success) for r in history] == [("fofa", 42, True)]


@pytest.mark.asyncio
async def test_search_failure_records_failed_history(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    gateway = FakeGateway(default=RuntimeError("401 unauthorized"))
    backend = _backend(repos, bus, test_config, gateways={Platform.HUNTER: gateway})

    with pytest.raises(BackendError, match="401 unauthorized"):
        await backend.search_assets("hunter", 'ip="1.1.1.1"', 1, 20)

    [record] = await backend.get_query_history()
    assert not record.success
    assert record.error_message == "401 unauthorized"
    assert record.results_count == 0


@pytest.mark.asyncio
async def test_search_without_gateway(repos, bus: ProgressEventBus, test_config: Config) -> None:
    backend = _backend(repos, bus, test_config)
    with pytest.raises(BackendError, match="No search client configured for quake"):
        await backend.search_assets("quake", "port: 80", 1, 20)
    with pytest.raises(BackendError, match="Unsupported platform"):
        await backend.search_assets("shodan", "port: 80", 1, 20)


# ── Export runner ──


@pytest.mark.asyncio
async def test_export_event_sequence_and_csv(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    gateway = FakeGateway({1: make_page(35, 20, "10.0.1"), 2: make_page(35, 15, "10.0.2")})
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})
    events = _collect(bus)

    path = await backend.export_results_with_progress(_request(pages=2))

    assert Path(path).parent == test_config.export_dir
    assert Path(path).name.startswith("fofa_export_")
    rows = _read_csv(path)
    assert len(rows) == 35
    assert rows[0]["ip"] == "10.0.1.0"

    assert [e.percent for e in events] == [0, 0, 50, 50, 100, 95, 100]
    assert all(e.task_id == "export_1" for e in events)
    assert events[0].current_page == 0
    assert events[2].log_type is LogType.SUCCESS
    assert events[2].total_results == 35
    assert events[-1].status is ProgressStatus.SUCCESS
    assert events[-1].fetched_results == 35
    assert [e.status for e in events[:-1]] == [ProgressStatus.RUNNING] * 6
    assert [call[1] for call in gateway.calls] == [1, 2]


@pytest.mark.asyncio
async def test_export_uses_settings_export_path(
    repos, bus: ProgressEventBus, test_config: Config, tmp_path: Path
) -> None:
    _history, settings = repos
    target = tmp_path / "chosen"
    await settings.save(AppSettings(export_path=str(target)))
    gateway = FakeGateway(default=make_page(5, 5))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})

    path = await backend.export_results_with_progress(_request(pages=1))

    assert Path(path).parent == target


@pytest.mark.asyncio
async def test_export_retries_then_succeeds(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    gateway = FakeGateway({1: [RuntimeError("timeout"), make_page(5, 5)]})
    backend = _backend(
        repos, bus, test_config, gateways={Platform.FOFA: gateway}, sleep=fake_sleep
    )
    events = _collect(bus)

    await backend.export_results_with_progress(_request(pages=1))

    warnings = [e for e in events if e.log_type is LogType.WARNING]
    assert len(warnings) == 1
    assert "retrying (1/3)" in warnings[0].status_text
    assert sleeps == [test_config.retry_delay_s]
    assert len(gateway.calls) == 2


@pytest.mark.asyncio
async def test_export_keeps_partial_rows(repos, bus: ProgressEventBus, test_config: Config) -> None:
    gateway = FakeGateway({1: make_page(100, 20), 2: RuntimeError("rate limited")})
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})
    events = _collect(bus)

    path = await backend.export_results_with_progress(_request(pages=3))

    assert len(_read_csv(path)) == 20
    assert len(gateway.calls) == 1 + test_config.page_retries
    error_logs = [e for e in events if e.log_type is LogType.ERROR]
    assert len(error_logs) == 1
    assert error_logs[0].status is ProgressStatus.RUNNING
    assert events[-1].status is ProgressStatus.SUCCESS


@pytest.mark.asyncio
async def test_export_first_page_failure_raises(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    gateway = FakeGateway(default=RuntimeError("invalid key"))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})
    events = _collect(bus)

    with pytest.raises(BackendError, match="Export failed: invalid key"):
        await backend.export_results_with_progress(_request(pages=2))

    assert events[-1].status is ProgressStatus.ERROR
    assert not list(test_config.export_dir.glob("*.csv"))


@pytest.mark.asyncio
async def test_export_no_data(repos, bus: ProgressEventBus, test_config: Config) -> None:
    gateway = FakeGateway(default=make_page(0, 0))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})
    events = _collect(bus)

    with pytest.raises(BackendError, match="No data retrieved"):
        await backend.export_results_with_progress(_request(pages=2))

    assert events[-1].percent == 100
    assert events[-1].status is ProgressStatus.ERROR


# ── All-platform export ──


@pytest.mark.asyncio
async def test_export_all_platforms_tags_and_skips(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    fofa = FakeGateway(default=make_page(2, 2, "10.0.1"))
    hunter = FakeGateway(default=make_page(1, 1, "10.0.2"))
    quake = FakeGateway(default=RuntimeError("quota"))
    daydaymap = FakeGateway(default=make_page(1, 1, "10.0.3"))
    backend = _backend(
        repos,
        bus,
        test_config,
        gateways={
            Platform.FOFA: fofa,
            Platform.HUNTER: hunter,
            Platform.QUAKE: quake,
            Platform.DAYDAYMAP: daydaymap,
        },
        translator=FakeTranslator(fail_for={"daydaymap"}),
    )

    await backend.export_all_platforms(
        'title="x"', 2, 50, TimeRange.WEEK, "2024-01-01", "2024-02-01"
    )

    [path] = list(test_config.export_dir.glob("all_platforms_export_*.csv"))
    rows = _read_csv(str(path))
    assert [row["platform"] for row in rows] == ["hunter", "fofa", "fofa"]
    assert hunter.calls == [('title="x"', 1, 100, TimeRange.WEEK, None, None)]
    assert fofa.calls[0][0] == 'fofa:title="x"'
    assert daydaymap.calls == []


@pytest.mark.asyncio
async def test_export_all_platforms_no_data(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    backend = _backend(repos, bus, test_config)
    with pytest.raises(BackendError, match="No platform returned data"):
        await backend.export_all_platforms("x", 1, 10, "all")


# ── History export ──


@pytest.mark.asyncio
async def test_export_query_history(
    repos, bus: ProgressEventBus, test_config: Config, tmp_path: Path
) -> None:
    history, _settings = repos
    backend = _backend(repos, bus, test_config)
    with pytest.raises(BackendError, match="No history to export"):
        await backend.export_query_history(str(tmp_path))

    await history.add("fofa", 'title="a"', 12, success=True)
    await history.add("quake", "port: 22", 0, success=False, error_message="timeout")

    path = await backend.export_query_history(str(tmp_path / "hist"))

    rows = _read_csv(path)
    assert list(rows[0].keys()) == ["ID", "Platform", "Query", "Results", "Time", "Status", "Error"]
    assert [(r["Platform"], r["Status"], r["Error"]) for r in rows] == [
        ("quake", "failed", "timeout"),
        ("fofa", "success", ""),
    ]


@pytest.mark.asyncio
async def test_delete_and_clear_history(repos, bus: ProgressEventBus, test_config: Config):
    history, _settings = repos
    backend = _backend(repos, bus, test_config)
    record = await history.add("fofa", "a", 1, success=True)
    await history.add("fofa", "b", 1, success=True)

    await backend.delete_query_history(record.id)
    assert [r.query for r in await backend.get_query_history()] == ["b"]
    await backend.clear_all_history()
    assert await backend.get_query_history() == []


# ── Translation ──


@pytest.mark.asyncio
async def test_translation_commands(repos, bus: ProgressEventBus, test_config: Config) -> None:
    backend = _backend(repos, bus, test_config, translator=FakeTranslator())

    assert await backend.get_supported_platforms() == ["hunter", "fofa", "quake", "daydaymap"]
    await backend.validate_query_syntax('title="x"', "fofa")
    with pytest.raises(BackendError, match="unbalanced quotes"):
        await backend.validate_query_syntax('title="x', "fofa")
    assert await backend.convert_query("q", "fofa", "quake") == "quake:q"

    results = await backend.convert_query_to_all("q", "fofa")
    assert [r.platform for r in results] == ["hunter", "quake", "daydaymap"]


@pytest.mark.asyncio
async def test_convert_to_all_reports_failing_target(
    repos, bus: ProgressEventBus, test_config: Config
) -> None:
    backend = _backend(repos, bus, test_config, translator=FakeTranslator(fail_for={"quake"}))
    with pytest.raises(BackendError, match="quake: cannot convert"):
        await backend.convert_query_to_all("q", "fofa")


@pytest.mark.asyncio
async def test_missing_translator(repos, bus: ProgressEventBus, test_config: Config) -> None:
    backend = _backend(repos, bus, test_config)
    with pytest.raises(BackendError, match="No query translator configured"):
        await backend.convert_query("q", "fofa", "quake")


# ── Keys and settings ──


@pytest.mark.asyncio
async def test_add_api_key(repos, bus: ProgressEventBus, test_config: Config) -> None:
    store = FakeKeyStore()
    backend = _backend(repos, bus, test_config, key_store=store)

    await backend.add_api_key("hunter", "k1")
    await backend.add_api_key("fofa", "k2", "me@example.com")
    with pytest.raises(BackendError, match="FOFA keys require an email"):
        await backend.add_api_key("fofa", "k3")
    with pytest.raises(BackendError, match="invalid key format"):
        await backend.add_api_key("quake", "bad")

    assert store.keys == [("hunter", "k1", None), ("fofa", "k2", "me@example.com")]


@pytest.mark.asyncio
async def test_add_api_key_without_store(repos, bus: ProgressEventBus, test_config: Config):
    backend = _backend(repos, bus, test_config)
    with pytest.raises(BackendError, match="No key store configured"):
        await backend.add_api_key("hunter", "k1")


@pytest.mark.asyncio
async def test_settings_commands(repos, bus: ProgressEventBus, test_config: Config) -> None:
    backend = _backend(repos, bus, test_config)
    assert await backend.get_settings() == AppSettings()
    await backend.save_settings(AppSettings(page_size=50))
    assert (await backend.get_settings()).page_size == 50


# ── Storage failures ──


@pytest.mark.asyncio
async def test_corrupt_settings_surface_as_backend_error(
    in_memory_db: Database, repos, bus: ProgressEventBus, test_config: Config
) -> None:
    await in_memory_db.execute(
        "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
        (SettingsRepository._KEY, "{not json"),
    )
    await in_memory_db.commit()
    gateway = FakeGateway(default=make_page(3, 3))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})

    with pytest.raises(BackendError, match="Failed to load settings"):
        await backend.get_settings()
    with pytest.raises(BackendError, match="Failed to load settings"):
        await backend.export_results_with_progress(_request(pages=1))

    jobs = JobCoordinator(backend, bus)
    tracker = ProgressTracker()
    result = await jobs.export("fofa", 'title="x"', 1, 20, tracker)

    assert isinstance(result, Err)
    assert tracker.status is ProgressStatus.ERROR
    assert tracker.closable


@pytest.mark.asyncio
async def test_search_history_write_failure_surfaces_as_backend_error(
    in_memory_db: Database, repos, bus: ProgressEventBus, test_config: Config
) -> None:
    gateway = FakeGateway(default=make_page(5, 5))
    backend = _backend(repos, bus, test_config, gateways={Platform.FOFA: gateway})
    await in_memory_db.close()

    with pytest.raises(BackendError, match="Failed to record history"):
        await backend.search_assets("fofa", "port=80", 1, 20)

    jobs = JobCoordinator(backend, bus)
    tracker = ProgressTracker()
    result = await jobs.search("fofa", "port=80", tracker=tracker)

    assert isinstance(result, Err)
    assert tracker.status is ProgressStatus.ERROR
    assert tracker.closable


@pytest.mark.asyncio
async def test_supported_platforms_failure(repos, bus: ProgressEventBus, test_config: Config):
    class BrokenTranslator(FakeTranslator):
        def supported_platforms(self) -> list[str]:
            raise OSError("rules file missing")

    backend = _backend(repos, bus, test_config, translator=BrokenTranslator())
    with pytest.raises(BackendError, match="rules file missing"):
        await backend.get_supported_platforms()
