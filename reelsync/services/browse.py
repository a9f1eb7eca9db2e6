"""Read-only browsing of the remote movie catalogs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

from ..models import MovieRecord
from .tmdb import TMDBClient
from .trakt import TraktClient, TraktError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Trending:
    """Movies currently trending on Trakt."""

    limit: int | None = None


@dataclass(slots=True, frozen=True)
class Summary:
    """A single movie looked up by its IMDb id."""

    imdb_id: str


BrowseCategory = Union[Trending, Summary]


class MovieBrowser:
    """Loads movie lists for a browse category."""

    def __init__(self, trakt_client: TraktClient, tmdb_client: TMDBClient):
        self._trakt = trakt_client
        self._tmdb = tmdb_client

    async def load(self, category: BrowseCategory) -> list[MovieRecord] | None:
        """Return the movies for ``category`` or ``None`` if Trakt failed."""

        try:
            if isinstance(category, Trending):
                movies = await self._trakt.trending(limit=category.limit)
            elif isinstance(category, Summary):
                movies = [await self._trakt.summary(category.imdb_id)]
            else:
                raise TypeError(f"Unsupported browse category: {category!r}")
        except TraktError as exc:
            if isinstance(category, Summary) and exc.status_code == 404:
                return []
            logger.warning("Loading %r from Trakt failed: %s", category, exc)
            return None

        if not self._tmdb.enabled:
            return movies
        return list(await asyncio.gather(*(self._tmdb.enrich(movie) for movie in movies)))
