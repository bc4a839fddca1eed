"""Query history models."""

from __future__ import annotations

from pydantic import BaseModel

ALL_PLATFORMS_FILTER = "all"


class HistoryRecord(BaseModel):
    """A persisted search, written by the backend after every search."""

    id: str
    platform: str
    query: str
    results_count: int = 0
    timestamp: str
    success: bool = True
    error_message: str | None = None

    @property
    def replayable(self) -> bool:
        return self.success and self.results_count > 0
