"""Progress state machine plus log accumulator for one task session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from assetmap.models.progress import (
    LogType,
    ProgressEvent,
    ProgressLogEntry,
    ProgressSnapshot,
    ProgressStatus,
    SummaryItem,
)

logger = logging.getLogger(__name__)

AUTO_DISMISS_DELAY_S = 3.0

SUMMARY_LABELS = {
    "total_pages": "Total pages",
    "current_page": "Current page",
    "total_results": "Total results",
    "fetched_results": "Fetched",
}

TrackerListener = Callable[[ProgressSnapshot], None]


def _now() -> str:
    return datetime.now().strftime("%H:%M:%S")


class ProgressTracker:
    """Tracks one open task at a time.

    Every applied event overwrites percent, status and status text; there is
    no cross-task merging. The summary is rebuilt from the counters present
    in the latest event that carries any counter. Percent is not assumed to
    be monotonic.
    """

    def __init__(
        self,
        title: str = "",
        *,
        auto_dismiss: bool = False,
        dismiss_delay_s: float = AUTO_DISMISS_DELAY_S,
        clock: Callable[[], str] = _now,
    ) -> None:
        self.title = title
        self.auto_dismiss = auto_dismiss
        self.dismiss_delay_s = dismiss_delay_s
        self._clock = clock
        self._task_id = ""
        self._visible = False
        self._status = ProgressStatus.IDLE
        self._percent = 0.0
        self._status_text = ""
        self._logs: list[ProgressLogEntry] = []
        self._summary: list[SummaryItem] = []
        self._listeners: list[TrackerListener] = []
        self._dismiss_handle: asyncio.TimerHandle | None = None

    # ── Read side ──

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def status(self) -> ProgressStatus:
        return self._status

    @property
    def percent(self) -> float:
        return self._percent

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def logs(self) -> list[ProgressLogEntry]:
        return list(self._logs)

    @property
    def summary(self) -> list[SummaryItem]:
        return list(self._summary)

    @property
    def closable(self) -> bool:
        """Idle and terminal states may be dismissed; running may not."""
        return self._status is not ProgressStatus.RUNNING

    @property
    def can_cancel(self) -> bool:
        # No backend cancel command exists for export jobs.
        return False

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            task_id=self._task_id,
            title=self.title,
            visible=self._visible,
            status=self._status,
            percent=self._percent,
            status_text=self._status_text,
            logs=list(self._logs),
            summary=list(self._summary),
            closable=self.closable,
        )

    def add_listener(self, listener: TrackerListener) -> Callable[[], None]:
        """Register a change listener and return its disposer."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    # ── Write side ──

    def open(self, task_id: str, status_text: str = "", log_message: str = "") -> None:
        """Reset the session and enter ``running`` for a new task."""
        self._cancel_dismiss()
        self._task_id = task_id
        self._visible = True
        self._status = ProgressStatus.RUNNING
        self._percent = 0.0
        self._status_text = status_text
        self._logs = []
        self._summary = []
        if log_message:
            self._append_log(log_message, LogType.INFO)
        self._notify()

    def apply(self, event: ProgressEvent) -> None:
        """Fold one inbound event into the session."""
        self._percent = event.percent
        self._status = event.status
        self._status_text = event.status_text
        if event.log_message:
            self._append_log(event.log_message, event.log_type or LogType.INFO)
        if event.has_counters():
            self._summary = _build_summary(event)
        self._after_status_change()
        self._notify()

    def set_progress(self, percent: float, status_text: str | None = None) -> None:
        """Move the bar for caller-driven (non-event) sessions."""
        self._percent = min(100.0, max(0.0, percent))
        if status_text is not None:
            self._status_text = status_text
        self._notify()

    def complete(self, status_text: str, log_message: str | None = None) -> None:
        """Drive a single synthetic 100 %/success update."""
        self._percent = 100.0
        self._status = ProgressStatus.SUCCESS
        self._status_text = status_text
        if log_message:
            self._append_log(log_message, LogType.SUCCESS)
        self._after_status_change()
        self._notify()

    def fail(self, message: str) -> None:
        """Enter ``error`` unless a terminal status already arrived.

        When the backend already reported a terminal status through events,
        only the log line is added so the failure is not reported twice.
        """
        if self._status.is_terminal:
            self._append_log(message, LogType.ERROR)
            self._notify()
            return
        self._status = ProgressStatus.ERROR
        self._status_text = message
        self._append_log(message, LogType.ERROR)
        self._after_status_change()
        self._notify()

    def close(self) -> bool:
        """Dismiss the session if it is closing-eligible."""
        if not self.closable:
            return False
        self._cancel_dismiss()
        self._dismiss()
        return True

    # ── Internals ──

    def _append_log(self, message: str, log_type: LogType) -> None:
        self._logs.append(ProgressLogEntry(time=self._clock(), message=message, type=log_type))

    def _after_status_change(self) -> None:
        if not (self.auto_dismiss and self._status.is_terminal):
            return
        self._cancel_dismiss()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; dismissing %s immediately", self._task_id)
            self._dismiss()
            return
        self._dismiss_handle = loop.call_later(self.dismiss_delay_s, self._dismiss)

    def _dismiss(self) -> None:
        self._dismiss_handle = None
        self._visible = False
        self._logs = []
        self._notify()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)


def _build_summary(event: ProgressEvent) -> list[SummaryItem]:
    items: list[SummaryItem] = []
    for field_name, label in SUMMARY_LABELS.items():
        value = getattr(event, field_name)
        if value is not None:
            items.append(SummaryItem(label=label, value=value))
    return items
