"""qasync loop integration and subscription lifetimes for views."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

from PySide6.QtWidgets import QApplication
from qasync import QEventLoop

logger = logging.getLogger(__name__)
_SCHEDULED_TASKS: set[asyncio.Task[Any]] = set()

P = ParamSpec("P")
T = TypeVar("T")


def create_event_loop(app: QApplication) -> QEventLoop:
    """Create and install a qasync event loop so backend coroutines run under Qt."""
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    return loop


def async_slot(
    func: Callable[P, Coroutine[Any, Any, T]],
) -> Callable[P, None]:
    """Wrap a coroutine method so it can be connected to a Qt signal.

    Usage::

        @async_slot
        async def _on_search_clicked(self) -> None:
            result = await self._jobs.search(platform, query, tracker=self._tracker)
            self._show(result)
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> None:
        schedule(func(*args, **kwargs))

    return wrapper


def schedule(coro: Coroutine[Any, Any, T]) -> asyncio.Future[T]:
    """Schedule a coroutine on the running loop, keeping a strong reference."""
    task: asyncio.Task[T] = asyncio.create_task(coro)
    _SCHEDULED_TASKS.add(task)
    task.add_done_callback(_on_task_done)
    return task


def pending_task_count() -> int:
    return len(_SCHEDULED_TASKS)


def cancel_all_tasks() -> None:
    """Cancel all tracked outstanding tasks."""
    current = asyncio.current_task()
    for task in list(_SCHEDULED_TASKS):
        if task is current:
            continue
        task.cancel()


def _on_task_done(task: asyncio.Task[Any]) -> None:
    _SCHEDULED_TASKS.discard(task)
    if not task.cancelled() and (exc := task.exception()) is not None:
        logger.error("Background task %s failed", task.get_name(), exc_info=exc)


class Subscriptions:
    """Collects disposers from bus, tracker and theme subscriptions.

    A view registers every disposer it receives and calls ``dispose`` from
    its teardown, so no handler outlives the widget it updates.
    """

    def __init__(self) -> None:
        self._disposers: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._disposers)

    def add(self, disposer: Callable[[], None]) -> Callable[[], None]:
        self._disposers.append(disposer)
        return disposer

    def dispose(self) -> None:
        disposers, self._disposers = self._disposers, []
        for disposer in reversed(disposers):
            disposer()
