"""Pydantic models and static registries for assetmap."""

from assetmap.models.conversion import ALL_TARGETS, ConversionResult
from assetmap.models.dialects import (
    DIALECTS,
    PlatformDialect,
    SyntaxHint,
    connector_for,
    dialect_for,
    examples_for,
    placeholder_for,
)
from assetmap.models.history import ALL_PLATFORMS_FILTER, HistoryRecord
from assetmap.models.keys import BatchOutcome
from assetmap.models.platforms import ALL_PLATFORMS, PLATFORM_LABELS, Platform, parse_platform
from assetmap.models.progress import (
    EXPORT_PROGRESS_CHANNEL,
    LogType,
    ProgressEvent,
    ProgressLogEntry,
    ProgressSnapshot,
    ProgressStatus,
    SummaryItem,
)
from assetmap.models.search import (
    AssetResult,
    ExportRequest,
    ExportScope,
    SearchResultPage,
    Task,
    TaskKind,
    TimeRange,
)
from assetmap.models.settings import AppSettings, Language, ThemeMode

__all__ = [
    "AppSettings",
    "AssetResult",
    "BatchOutcome",
    "ConversionResult",
    "ExportRequest",
    "ExportScope",
    "HistoryRecord",
    "Language",
    "LogType",
    "Platform",
    "PlatformDialect",
    "ProgressEvent",
    "ProgressLogEntry",
    "ProgressSnapshot",
    "ProgressStatus",
    "SearchResultPage",
    "SummaryItem",
    "SyntaxHint",
    "Task",
    "TaskKind",
    "ThemeMode",
    "TimeRange",
    "ALL_PLATFORMS",
    "ALL_PLATFORMS_FILTER",
    "ALL_TARGETS",
    "DIALECTS",
    "EXPORT_PROGRESS_CHANNEL",
    "PLATFORM_LABELS",
    "connector_for",
    "dialect_for",
    "examples_for",
    "parse_platform",
    "placeholder_for",
]
