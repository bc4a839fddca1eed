"""Search, export and task models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from assetmap.models.platforms import Platform

DEFAULT_PAGE_SIZE = 20
REPLAY_PAGE_SIZE = 100
PAGE_SIZE_OPTIONS: tuple[int, ...] = (10, 20, 50, 100)
EXPORT_PAGE_OPTIONS: tuple[int, ...] = (5, 10, 20, 50, 100)


class TaskKind(StrEnum):
    SEARCH = "search"
    EXPORT = "export"


class ExportScope(StrEnum):
    """Which export workflow the operator picked."""

    CURRENT = "current"
    PLATFORM = "platform"
    ALL = "all"


class TimeRange(StrEnum):
    ALL = "all"
    DAY = "1d"
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "365d"
    CUSTOM = "custom"


class Task(BaseModel):
    """One identified long-running operation."""

    task_id: str
    kind: TaskKind
    platform: Platform | None
    query: str


class AssetResult(BaseModel):
    """A single asset row returned by a platform."""

    model_config = ConfigDict(extra="allow")

    url: str = ""
    ip: str = ""
    port: str = ""
    web_title: str | None = None
    country: str | None = None
    province: str | None = None
    city: str | None = None
    server: str | None = None


class SearchResultPage(BaseModel):
    """One page of one platform's results."""

    total: int = 0
    results: list[AssetResult] = Field(default_factory=list)


class ExportRequest(BaseModel):
    """Parameters of one export job."""

    task_id: str
    platform: Platform
    query: str
    pages: int
    page_size: int
    time_range: TimeRange = TimeRange.ALL
    start_date: str | None = None
    end_date: str | None = None
