"""Shared fixtures for AssetMap tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from assetmap.config import Config
from assetmap.data.db import Database
from assetmap.models.search import AssetResult, SearchResultPage
from assetmap.services.events import ProgressEventBus


def make_page(total: int, count: int, prefix: str = "10.0.0") -> SearchResultPage:
    """A result page with ``count`` synthetic rows."""
    return SearchResultPage(
        total=total,
        results=[
            AssetResult(url=f"http://{prefix}.{i}", ip=f"{prefix}.{i}", port="80")
            for i in range(count)
        ],
    )


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config pointing at temporary directories with no retry/page delays."""
    return Config(
        data_dir=tmp_path / "data",
        export_dir=tmp_path / "exports",
        retry_delay_s=0,
        page_delay_s=0,
        auto_dismiss_s=0.05,
    )


@pytest.fixture
async def in_memory_db() -> AsyncGenerator[Database]:
    """SQLite in-memory database for fast unit/integration tests."""
    db = Database(Path(":memory:"))
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)


@pytest.fixture
def bus() -> ProgressEventBus:
    return ProgressEventBus()


@pytest.fixture
def fake_backend() -> SimpleNamespace:
    """Backend double exposing every command as an AsyncMock."""
    return SimpleNamespace(
        search_assets=AsyncMock(return_value=make_page(250, 20)),
        export_results_with_progress=AsyncMock(return_value="/tmp/out.csv"),
        export_all_platforms=AsyncMock(return_value=None),
        get_query_history=AsyncMock(return_value=[]),
        delete_query_history=AsyncMock(return_value=None),
        clear_all_history=AsyncMock(return_value=None),
        export_query_history=AsyncMock(return_value="/tmp/history.csv"),
        get_supported_platforms=AsyncMock(return_value=["hunter", "fofa", "quake", "daydaymap"]),
        validate_query_syntax=AsyncMock(return_value=None),
        convert_query=AsyncMock(return_value='title:"x"'),
        convert_query_to_all=AsyncMock(return_value=[]),
        add_api_key=AsyncMock(return_value=None),
        get_settings=AsyncMock(),
        save_settings=AsyncMock(return_value=None),
    )
