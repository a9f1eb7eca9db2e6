"""Single-flight gate for background work."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskCoordinator:
    """Allows at most one background task to hold the slot at a time.

    The slot is taken by ``try_acquire`` (or ``submit``) and handed back by
    ``on_task_completed``, which the task itself calls when it finishes.
    Requests made while the slot is taken are rejected, not queued.
    """

    def __init__(self) -> None:
        self._busy = False
        self._task: asyncio.Task[Any] | None = None

    @property
    def is_busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        return True

    def on_task_completed(self) -> None:
        """Free the slot for the next task."""

        if not self._busy:
            logger.warning("Task completion reported while no task was running")
        self._busy = False
        self._task = None

    def submit(
        self, factory: Callable[[], Coroutine[Any, Any, T]]
    ) -> asyncio.Task[T] | None:
        """Start ``factory()`` as a task if the slot is free.

        Returns ``None`` when another task is in flight. The coroutine is
        responsible for calling ``on_task_completed`` on every exit path.
        """

        if not self.try_acquire():
            return None
        task = asyncio.create_task(factory())
        self._task = task
        task.add_done_callback(self._release_abandoned)
        return task

    def _release_abandoned(self, task: asyncio.Task[Any]) -> None:
        # A task cancelled before it ever ran cannot report completion itself.
        if self._task is task:
            logger.warning("Background task ended without releasing its slot")
            self.on_task_completed()
