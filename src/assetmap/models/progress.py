"""Progress event and tracker models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EXPORT_PROGRESS_CHANNEL = "export-progress"


class ProgressStatus(StrEnum):
    """Lifecycle states of a tracked task."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ProgressStatus.SUCCESS, ProgressStatus.ERROR, ProgressStatus.CANCELLED}
)


class LogType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class ProgressEvent(BaseModel):
    """One progress update for a task, as emitted by the job runner."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_id: str
    percent: float = 0.0
    status: ProgressStatus = ProgressStatus.RUNNING
    status_text: str = ""
    log_message: str | None = None
    log_type: LogType | None = None
    current_page: int | None = None
    total_pages: int | None = None
    total_results: int | None = None
    fetched_results: int | None = None

    @field_validator("percent")
    @classmethod
    def _clamp_percent(cls, value: float) -> float:
        return min(100.0, max(0.0, value))

    def has_counters(self) -> bool:
        return any(
            value is not None
            for value in (
                self.total_pages,
                self.current_page,
                self.total_results,
                self.fetched_results,
            )
        )


class ProgressLogEntry(BaseModel):
    """A log line shown under the progress bar."""

    time: str
    message: str
    type: LogType = LogType.INFO


class SummaryItem(BaseModel):
    label: str
    value: str | int


class ProgressSnapshot(BaseModel):
    """Read-only view of a tracker, handed to listeners."""

    task_id: str = ""
    title: str = ""
    visible: bool = False
    status: ProgressStatus = ProgressStatus.IDLE
    percent: float = 0.0
    status_text: str = ""
    logs: list[ProgressLogEntry] = Field(default_factory=list)
    summary: list[SummaryItem] = Field(default_factory=list)
    closable: bool = True
