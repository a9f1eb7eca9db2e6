"""Entry point for the FastAPI-powered ReelSync service."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import Database
from .models import MovieRecord
from .services.browse import MovieBrowser, Summary, Trending
from .services.tmdb import TMDBClient
from .services.trakt import TraktClient
from .sync import (
    BatchApplyError,
    CredentialGate,
    MovieStore,
    SyncOutcome,
    TaskCoordinator,
    WatchlistSyncService,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OUTCOME_MESSAGES: dict[SyncOutcome, str] = {
    SyncOutcome.SUCCESS: "Watchlist updated.",
    SyncOutcome.INVALID_CREDENTIALS: "Could not update the watchlist: sign in to Trakt again.",
    SyncOutcome.NETWORK_OR_API_FAILURE: "Could not update the watchlist. Try again later.",
    SyncOutcome.APPLY_FAILURE: "Could not save the watchlist.",
    SyncOutcome.CANCELLED: "Watchlist update cancelled.",
}

app: FastAPI


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    trakt_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.trakt_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    trakt = TraktClient(settings, trakt_http_client)
    tmdb = TMDBClient(settings, tmdb_http_client)
    sync_service = WatchlistSyncService(
        CredentialGate(settings),
        trakt,
        MovieStore(database.session_factory),
        TaskCoordinator(),
    )

    app.state.sync_service = sync_service
    app.state.browser = MovieBrowser(trakt, tmdb)
    app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        try:
            await sync_service.stop()
        finally:
            await database.dispose()
            await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Browse Trakt movies and mirror your Trakt watchlist locally",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_sync_service(app: FastAPI) -> WatchlistSyncService:
    service = getattr(app.state, "sync_service", None)
    if not isinstance(service, WatchlistSyncService):
        raise RuntimeError("Watchlist sync service not initialised")
    return service


def get_browser(app: FastAPI) -> MovieBrowser:
    browser = getattr(app.state, "browser", None)
    if not isinstance(browser, MovieBrowser):
        raise RuntimeError("Movie browser not initialised")
    return browser


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/api/watchlist/sync")
    async def sync_watchlist(request: Request) -> JSONResponse:
        service = get_sync_service(fastapi_app)
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        wait_for_completion = _coerce_bool(payload.get("waitForCompletion", False))

        task = service.request_sync()
        if task is None:
            return JSONResponse(
                {"status": "busy", "message": "A watchlist update is already running."},
                status_code=409,
            )
        if not wait_for_completion:
            return JSONResponse({"status": "scheduled"}, status_code=202)

        try:
            outcome = await asyncio.shield(task)
        except BatchApplyError:
            return JSONResponse(
                _outcome_payload(SyncOutcome.APPLY_FAILURE), status_code=500
            )
        return JSONResponse(_outcome_payload(outcome))

    @fastapi_app.post("/api/watchlist/cancel")
    async def cancel_sync() -> dict[str, bool]:
        service = get_sync_service(fastapi_app)
        return {"cancelled": service.cancel()}

    @fastapi_app.get("/api/watchlist/status")
    async def sync_status() -> dict[str, Any]:
        service = get_sync_service(fastapi_app)
        outcome = service.last_outcome
        return {
            "running": service.is_running(),
            "lastOutcome": outcome.value if outcome else None,
            "message": OUTCOME_MESSAGES[outcome] if outcome else None,
        }

    @fastapi_app.get("/api/watchlist")
    async def watchlist() -> dict[str, Any]:
        service = get_sync_service(fastapi_app)
        movies = await service.store.list_movies()
        return {"movies": [_movie_payload(movie) for movie in movies]}

    @fastapi_app.get("/api/movies/trending")
    async def trending(limit: int | None = None) -> dict[str, Any]:
        if limit is not None and not 1 <= limit <= 100:
            raise HTTPException(status_code=400, detail="limit must be between 1 and 100")
        movies = await get_browser(fastapi_app).load(Trending(limit=limit))
        if movies is None:
            raise HTTPException(status_code=502, detail="Trakt is unavailable")
        return {"movies": [_movie_payload(movie) for movie in movies]}

    @fastapi_app.get("/api/movies/{imdb_id}")
    async def movie_summary(imdb_id: str) -> dict[str, Any]:
        movies = await get_browser(fastapi_app).load(Summary(imdb_id=imdb_id))
        if movies is None:
            raise HTTPException(status_code=502, detail="Trakt is unavailable")
        if not movies:
            raise HTTPException(status_code=404, detail=f"Movie {imdb_id} not found")
        return _movie_payload(movies[0])


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    if isinstance(value, (int, float)):
        return bool(value)
    return False


def _outcome_payload(outcome: SyncOutcome) -> dict[str, str]:
    return {"outcome": outcome.value, "message": OUTCOME_MESSAGES[outcome]}


def _movie_payload(movie: MovieRecord) -> dict[str, Any]:
    return movie.model_dump(mode="json", by_alias=True)


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "reelsync.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
