"""Process-wide progress event channel with disposable subscriptions."""

from __future__ import annotations

import logging
from collections.abc import Callable

from assetmap.models.progress import EXPORT_PROGRESS_CHANNEL, ProgressEvent

logger = logging.getLogger(__name__)

ProgressHandler = Callable[[ProgressEvent], None]
Disposer = Callable[[], None]


class ProgressEventBus:
    """Named channel delivering ProgressEvent payloads to every subscriber.

    ``subscribe`` returns a disposer; views must call it on teardown so no
    handler keeps updating state nobody reads.
    """

    def __init__(self, channel: str = EXPORT_PROGRESS_CHANNEL) -> None:
        self.channel = channel
        self._handlers: dict[int, ProgressHandler] = {}
        self._next_token = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: ProgressHandler, *, task_id: str | None = None) -> Disposer:
        """Register a handler, optionally filtered to one task id."""
        token = self._next_token
        self._next_token += 1

        if task_id is None:
            self._handlers[token] = handler
        else:

            def _filtered(event: ProgressEvent) -> None:
                if event.task_id == task_id:
                    handler(event)

            self._handlers[token] = _filtered

        def dispose() -> None:
            self._handlers.pop(token, None)

        return dispose

    def emit(self, event: ProgressEvent) -> None:
        """Deliver an event to all current subscribers, in subscription order."""
        for handler in list(self._handlers.values()):
            try:
                handler(event)
            except Exception:
                logger.exception("Progress handler failed on %s", self.channel)
