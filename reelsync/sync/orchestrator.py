"""Drives one watchlist sync run from credentials to the committed batch."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from ..models import MovieRecord
from ..services.trakt import TraktAuth, TraktClient, TraktError
from .coordinator import TaskCoordinator
from .credentials import CredentialGate
from .reconciler import plan
from .store import BatchApplyError, MovieStore

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK_OR_API_FAILURE = "network_or_api_failure"
    APPLY_FAILURE = "apply_failure"
    CANCELLED = "cancelled"


class WatchlistSync:
    """A single run mirroring the Trakt watchlist into the movie store.

    Phases run strictly in order: check credentials, fetch the remote
    watchlist, read the stored ids, plan, apply. Only the apply phase writes,
    and it does so atomically. ``cancel`` is honoured up to the moment the
    apply starts. Whatever happens, the run drops its credential handle and
    fetched snapshot and reports completion to the coordinator exactly once.

    A failed apply is not turned into an outcome value: the
    ``BatchApplyError`` propagates so storage faults are never mistaken for a
    network hiccup. Callers record it as ``SyncOutcome.APPLY_FAILURE``.
    """

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
        self._cancel_requested = asyncio.Event()
        self._handle: TraktAuth | None = None
        self._snapshot: list[MovieRecord] | None = None
        self._started = False
        self._applying = False

    def cancel(self) -> None:
        """Ask the run to stop; ignored once the batch is being applied."""

        if self._applying:
            logger.info("Watchlist sync is applying its batch; cancel ignored")
            return
        self._cancel_requested.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    async def run(self) -> SyncOutcome:
        if self._started:
            raise RuntimeError("A WatchlistSync instance can only run once")
        self._started = True
        try:
            outcome = await self._run()
        finally:
            self._finalize()
        logger.info("Watchlist sync finished: %s", outcome.value)
        return outcome

    async def _run(self) -> SyncOutcome:
        if self.cancelled:
            return SyncOutcome.CANCELLED

        if not self._credentials.has_valid_credentials():
            logger.info("Trakt credentials missing or invalid, skipping watchlist sync")
            return SyncOutcome.INVALID_CREDENTIALS
        self._handle = self._credentials.get_authenticated_handle()

        try:
            snapshot = await self._fetch_remote(self._handle)
        except TraktError as exc:
            logger.warning("Fetching the Trakt watchlist failed: %s", exc)
            return SyncOutcome.NETWORK_OR_API_FAILURE
        if snapshot is None:
            return SyncOutcome.CANCELLED
        self._snapshot = snapshot

        local_ids = await self._store.list_known_ids()
        if self.cancelled:
            return SyncOutcome.CANCELLED

        batch = plan(self._snapshot, local_ids)
        logger.info(
            "Applying watchlist batch for %s: %s",
            self._handle.username,
            batch.summary(),
        )

        self._applying = True
        try:
            await self._store.apply_batch(batch.inserts, batch.updates, batch.deletes)
        except BatchApplyError:
            # Failed transactions aren't recoverable within this run.
            logger.exception("Problem applying watchlist batch")
            raise
        return SyncOutcome.SUCCESS

    async def _fetch_remote(self, handle: TraktAuth) -> list[MovieRecord] | None:
        """Fetch the watchlist unless a cancel arrives first (then ``None``)."""

        fetch = asyncio.ensure_future(self._trakt.fetch_watchlist(handle))
        cancel_wait = asyncio.ensure_future(self._cancel_requested.wait())
        try:
            done, _ = await asyncio.wait(
                {fetch, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for pending in (fetch, cancel_wait):
                if not pending.done():
                    pending.cancel()
        if cancel_wait in done:
            await asyncio.gather(fetch, return_exceptions=True)
            return None
        return fetch.result()

    def _finalize(self) -> None:
        self._handle = None
        self._snapshot = None
        self._coordinator.on_task_completed()
