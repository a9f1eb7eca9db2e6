"""Schedules watchlist sync runs behind the single-flight coordinator."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from ..services.trakt import TraktClient
from .coordinator import TaskCoordinator
from .credentials import CredentialGate
from .orchestrator import SyncOutcome, WatchlistSync
from .store import BatchApplyError, MovieStore

logger = logging.getLogger(__name__)


class WatchlistSyncService:
    """Starts sync runs in the background and remembers how the last one ended."""

    def __init__(
        self,
        credentials: CredentialGate,
        trakt_client: TraktClient,
        store: MovieStore,
        coordinator: TaskCoordinator,
    ):
        self._credentials = credentials
        self._trakt = trakt_client
        self._store = store
        self._coordinator = coordinator
        self._active: WatchlistSync | None = None
        self._task: asyncio.Task[SyncOutcome] | None = None
        self.last_outcome: SyncOutcome | None = None

    @property
    def store(self) -> MovieStore:
        return self._store

    def is_running(self) -> bool:
        return self._coordinator.is_busy

    def request_sync(self) -> asyncio.Task[SyncOutcome] | None:
        """Schedule a run; ``None`` means one is already in flight."""

        # Built up front so a cancel arriving before the task starts still lands.
        run = WatchlistSync(
            self._credentials, self._trakt, self._store, self._coordinator
        )
        task = self._coordinator.submit(lambda: self._execute(run))
        if task is None:
            logger.info("Watchlist sync already running, request rejected")
            return None
        self._active = run
        self._task = task
        task.add_done_callback(self._on_done)
        return task

    def cancel(self) -> bool:
        """Cancel the active run if there is one."""

        if self._active is None:
            return False
        self._active.cancel()
        return True

    async def stop(self) -> None:
        """Cancel the active run and wait for it to wind down."""

        task = self._task
        if task is None:
            return
        self.cancel()
        with suppress(asyncio.CancelledError, BatchApplyError):
            await task

    async def _execute(self, run: WatchlistSync) -> SyncOutcome:
        try:
            outcome = await run.run()
        except BatchApplyError:
            self.last_outcome = SyncOutcome.APPLY_FAILURE
            raise
        except asyncio.CancelledError:
            self.last_outcome = SyncOutcome.CANCELLED
            raise
        self.last_outcome = outcome
        return outcome

    def _on_done(self, task: asyncio.Task[SyncOutcome]) -> None:
        if self._task is task:
            self._task = None
            self._active = None
        if task.cancelled():
            # Covers tasks cancelled before ``_execute`` ever ran.
            self.last_outcome = SyncOutcome.CANCELLED
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background watchlist sync failed", exc_info=exc)
