"""Protocol definitions for the backend command surface and its collaborators."""

from __future__ import annotations

from typing import Any, Protocol

from assetmap.models.conversion import ConversionResult
from assetmap.models.history import HistoryRecord
from assetmap.models.search import ExportRequest, SearchResultPage
from assetmap.models.settings import AppSettings


class BackendError(Exception):
    """A backend command failed; ``message`` is shown to the operator."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DatabaseProtocol(Protocol):
    """Async database interface."""

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> Any: ...

    async def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[Any]: ...

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> Any | None: ...

    async def commit(self) -> None: ...


class SearchGateway(Protocol):
    """HTTP client for one recon platform."""

    async def search(
        self,
        query: str,
        page: int,
        page_size: int,
        time_range: str = "all",
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> SearchResultPage: ...


class QueryTranslator(Protocol):
    """Cross-dialect validation and conversion engine."""

    def supported_platforms(self) -> list[str]: ...

    def validate(self, query: str, platform: str) -> None: ...

    def convert(self, query: str, from_platform: str, to_platform: str) -> str: ...


class KeyStore(Protocol):
    """Credential storage for platform API keys."""

    def add_key(self, platform: str, api_key: str, email: str | None = None) -> None: ...


class BackendProtocol(Protocol):
    """Commands the core consumes. Every method raises BackendError on failure."""

    async def search_assets(
        self, platform: str, query: str, page: int, page_size: int
    ) -> SearchResultPage: ...

    async def export_results_with_progress(self, request: ExportRequest) -> str: ...

    async def export_all_platforms(
        self,
        query: str,
        pages: int,
        page_size: int,
        time_range: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> None: ...

    async def get_query_history(self) -> list[HistoryRecord]: ...

    async def delete_query_history(self, record_id: str) -> None: ...

    async def clear_all_history(self) -> None: ...

    async def export_query_history(self, export_path: str) -> str: ...

    async def get_supported_platforms(self) -> list[str]: ...

    async def validate_query_syntax(self, query: str, platform: str) -> None: ...

    async def convert_query(self, query: str, from_platform: str, to_platform: str) -> str: ...

    async def convert_query_to_all(
        self, query: str, from_platform: str
    ) -> list[ConversionResult]: ...

    async def add_api_key(self, platform: str, api_key: str, email: str | None = None) -> None: ...

    async def get_settings(self) -> AppSettings: ...

    async def save_settings(self, settings: AppSettings) -> None: ...
