from __future__ import annotations

import asyncio
from typing import cast

from fastapi import FastAPI
from fastapi.testclient import TestClient

from reelsync.main import register_routes
from reelsync.models import MovieRecord
from reelsync.services.browse import BrowseCategory, MovieBrowser, Summary, Trending
from reelsync.services.tmdb import TMDBClient
from reelsync.services.trakt import TraktClient
from reelsync.sync import BatchApplyError, SyncOutcome, WatchlistSyncService


class StubStore:
    async def list_movies(self) -> list[MovieRecord]:
        return [MovieRecord(tmdb_id="603", title="The Matrix", in_watchlist=True)]


class StubSyncService(WatchlistSyncService):
    """Sync service stub returning canned outcomes."""

    def __init__(self, outcome: SyncOutcome | None = None, *, busy: bool = False, fail: bool = False) -> None:
        # Deliberately skip super().__init__ to avoid touching external systems.
        self._outcome = outcome or SyncOutcome.SUCCESS
        self._busy = busy
        self._fail = fail
        self.last_outcome = None
        self.requests = 0

    @property
    def store(self):  # type: ignore[override]
        return StubStore()

    def is_running(self) -> bool:
        return self._busy

    def request_sync(self):  # type: ignore[override]
        self.requests += 1
        if self._busy:
            return None

        async def _run() -> SyncOutcome:
            if self._fail:
                self.last_outcome = SyncOutcome.APPLY_FAILURE
                raise BatchApplyError("broken")
            self.last_outcome = self._outcome
            return self._outcome

        return asyncio.get_running_loop().create_task(_run())

    def cancel(self) -> bool:
        return self._busy


class StubBrowser(MovieBrowser):
    def __init__(self, result: list[MovieRecord] | None) -> None:
        super().__init__(cast(TraktClient, object()), cast(TMDBClient, object()))
        self.result = result
        self.categories: list[BrowseCategory] = []

    async def load(self, category: BrowseCategory) -> list[MovieRecord] | None:  # type: ignore[override]
        self.categories.append(category)
        return self.result


def _client(service: StubSyncService, browser: StubBrowser | None = None) -> TestClient:
    app = FastAPI()
    register_routes(app)
    app.state.sync_service = service
    app.state.browser = browser or StubBrowser([])
    return TestClient(app)


def test_sync_waits_for_outcome_and_reports_message() -> None:
    service = StubSyncService(SyncOutcome.NETWORK_OR_API_FAILURE)

    with _client(service) as client:
        response = client.post("/api/watchlist/sync", json={"waitForCompletion": True})
        status = client.get("/api/watchlist/status")

    assert response.status_code == 200
    assert response.json()["outcome"] == "network_or_api_failure"
    assert response.json()["message"]
    assert status.json()["lastOutcome"] == "network_or_api_failure"
    assert status.json()["running"] is False


def test_sync_without_waiting_is_scheduled() -> None:
    service = StubSyncService()

    with _client(service) as client:
        response = client.post("/api/watchlist/sync")

    assert response.status_code == 202
    assert response.json() == {"status": "scheduled"}
    assert service.requests == 1


def test_sync_is_rejected_while_busy() -> None:
    with _client(StubSyncService(busy=True)) as client:
        response = client.post("/api/watchlist/sync", json={"waitForCompletion": "true"})
        cancel = client.post("/api/watchlist/cancel")

    assert response.status_code == 409
    assert response.json()["status"] == "busy"
    assert cancel.json() == {"cancelled": True}


def test_apply_failure_surfaces_as_server_error() -> None:
    with _client(StubSyncService(fail=True)) as client:
        response = client.post("/api/watchlist/sync", json={"waitForCompletion": True})

    assert response.status_code == 500
    assert response.json()["outcome"] == "apply_failure"


def test_watchlist_lists_stored_movies() -> None:
    with _client(StubSyncService()) as client:
        response = client.get("/api/watchlist")

    assert response.status_code == 200
    movies = response.json()["movies"]
    assert movies[0]["tmdbId"] == "603"
    assert movies[0]["inWatchlist"] is True


def test_trending_and_summary_routes() -> None:
    browser = StubBrowser([MovieRecord(tmdb_id="949", title="Heat")])

    with _client(StubSyncService(), browser) as client:
        trending = client.get("/api/movies/trending", params={"limit": 5})
        summary = client.get("/api/movies/tt0113277")

    assert trending.json()["movies"][0]["title"] == "Heat"
    assert summary.json()["tmdbId"] == "949"
    assert browser.categories == [Trending(limit=5), Summary(imdb_id="tt0113277")]


def test_browse_routes_map_failures() -> None:
    with _client(StubSyncService(), StubBrowser(None)) as client:
        unavailable = client.get("/api/movies/trending")
        bad_limit = client.get("/api/movies/trending", params={"limit": 0})

    with _client(StubSyncService(), StubBrowser([])) as client:
        missing = client.get("/api/movies/tt-missing")

    assert unavailable.status_code == 502
    assert bad_limit.status_code == 400
    assert missing.status_code == 404
