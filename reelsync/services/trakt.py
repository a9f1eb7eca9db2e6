"""Utilities for communicating with the Trakt API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import MovieRecord

logger = logging.getLogger(__name__)


class TraktError(Exception):
    """Raised when Trakt cannot be reached or returns an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True, frozen=True)
class TraktAuth:
    """Credentials for calls made on behalf of the signed-in user."""

    client_id: str
    access_token: str
    username: str = "me"


class TraktClient:
    """Thin wrapper around the Trakt HTTP API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client
        self._max_retries = 3

    def _headers(self, auth: TraktAuth | None = None) -> dict[str, str]:
        headers = {
            "trakt-api-version": "2",
            "User-Agent": f"{self._settings.app_name} (reelsync)",
        }
        client_id = auth.client_id if auth else self._settings.trakt_client_id
        if client_id:
            headers["trakt-api-key"] = client_id
        if auth is not None:
            headers["Authorization"] = f"Bearer {auth.access_token}"
        return headers

    async def fetch_watchlist(self, auth: TraktAuth) -> list[MovieRecord]:
        """Return the complete movie watchlist of the authenticated user."""

        data = await self._get_json(
            f"/users/{auth.username}/watchlist/movies",
            params={"extended": "full"},
            auth=auth,
        )
        if not isinstance(data, list):
            raise TraktError("Unexpected Trakt watchlist response structure")
        try:
            return self._parse_movies(data, in_watchlist=True)
        except (TypeError, ValueError, OverflowError) as exc:
            raise TraktError(f"Unable to read Trakt watchlist entries: {exc}") from exc

    async def trending(
        self, *, limit: int | None = None, auth: TraktAuth | None = None
    ) -> list[MovieRecord]:
        """Return the currently trending movies."""

        params: dict[str, Any] = {"extended": "full"}
        params["limit"] = limit or self._settings.trending_limit
        data = await self._get_json("/movies/trending", params=params, auth=auth)
        if not isinstance(data, list):
            raise TraktError("Unexpected Trakt trending response structure")
        return self._parse_movies(data)

    async def summary(
        self, imdb_id: str, *, auth: TraktAuth | None = None
    ) -> MovieRecord:
        """Return the full summary of a single movie."""

        data = await self._get_json(
            f"/movies/{imdb_id}", params={"extended": "full"}, auth=auth
        )
        if not isinstance(data, dict):
            raise TraktError("Unexpected Trakt summary response structure")
        try:
            return MovieRecord.from_trakt_payload(data)
        except ValidationError as exc:
            raise TraktError(f"Trakt summary for {imdb_id} lacks a TMDb id") from exc

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        auth: TraktAuth | None = None,
    ) -> Any:
        # Retry on transient errors (timeouts, 5xx)
        attempt = 0
        while True:
            try:
                response = await self._client.get(
                    path, headers=self._headers(auth), params=params
                )
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Transient error talking to Trakt (%s). Retrying %s in %.1fs",
                        exc.__class__.__name__,
                        path,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise TraktError(f"Unable to reach Trakt for {path}: {exc}") from exc

            if 500 <= response.status_code < 600:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Trakt %s for %s. Retrying in %.1fs",
                        response.status_code,
                        path,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
            break

        if response.status_code >= 400:
            raise TraktError(
                f"Trakt request {path} failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TraktError(f"Unexpected non-JSON Trakt response for {path}") from exc

    def _backoff(self, attempt: int) -> float:
        return min(2 ** (attempt - 1), 5) + (0.1 * attempt)

    @staticmethod
    def _parse_movies(
        entries: list[Any], *, in_watchlist: bool | None = None
    ) -> list[MovieRecord]:
        movies: list[MovieRecord] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                movies.append(
                    MovieRecord.from_trakt_payload(entry, in_watchlist=in_watchlist)
                )
            except ValidationError:
                logger.warning("Skipping Trakt movie without a usable TMDb id: %s", entry)
        return movies
