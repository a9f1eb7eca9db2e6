"""Utilities for resolving artwork from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..models import MovieRecord

logger = logging.getLogger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/w780"


class TMDBClient:
    """Client filling in artwork Trakt did not provide."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def enabled(self) -> bool:
        return bool(self._settings.tmdb_api_key)

    async def enrich(self, record: MovieRecord) -> MovieRecord:
        """Fill in missing poster and fanart for a movie record."""

        if not self.enabled:
            return record
        if record.poster and record.fanart:
            # Nothing to resolve; avoid the round trip.
            return record

        try:
            details = await self._fetch_movie(record.tmdb_id)
        except httpx.HTTPError as exc:
            logger.warning("TMDB lookup failed for %s: %s", record.tmdb_id, exc)
            return record

        if not details:
            return record

        update: dict[str, Any] = {}
        if not record.poster and details.get("poster_path"):
            update["poster"] = self._build_image_url(details["poster_path"], POSTER_BASE_URL)
        if not record.fanart and details.get("backdrop_path"):
            update["fanart"] = self._build_image_url(
                details["backdrop_path"], BACKDROP_BASE_URL
            )
        if not record.imdb_id and details.get("imdb_id"):
            update["imdb_id"] = details["imdb_id"]

        if not update:
            return record
        return record.model_copy(update=update)

    async def _fetch_movie(self, tmdb_id: str) -> dict[str, Any] | None:
        params = {
            "api_key": self._settings.tmdb_api_key,
            "language": "en-US",
        }
        response = await self._client.get(f"/movie/{tmdb_id}", params=params)
        if response.status_code >= 400:
            logger.warning(
                "TMDB movie fetch for %s failed: %s", tmdb_id, response.text
            )
            return None
        try:
            payload = response.json()
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    @staticmethod
    def _build_image_url(path: str, base_url: str) -> str:
        if not path:
            return ""
        if path.startswith("http"):
            return path
        return f"{base_url}{path}"
