"""Pydantic models describing movie metadata."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Columns written for both inserts and updates; matched rows are overwritten
# wholesale rather than diffed.
ROW_FIELDS: tuple[str, ...] = (
    "tmdb_id",
    "imdb_id",
    "title",
    "year",
    "released",
    "url",
    "trailer",
    "runtime",
    "tagline",
    "overview",
    "certification",
    "poster",
    "fanart",
    "ratings_percentage",
    "ratings_votes",
    "watched",
    "in_watchlist",
    "in_collection",
)


class MovieRecord(BaseModel):
    """One movie's metadata plus the user's relationship flags."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    tmdb_id: str = Field(alias="tmdbId")
    imdb_id: str | None = Field(default=None, alias="imdbId")
    title: str | None = None
    year: int | None = None
    released: datetime | None = None
    url: str | None = None
    trailer: str | None = None
    runtime: int | None = None
    tagline: str | None = None
    overview: str | None = None
    certification: str | None = None
    poster: str | None = None
    fanart: str | None = None
    ratings_percentage: int | None = Field(default=None, alias="ratingsPercentage")
    ratings_votes: int | None = Field(default=None, alias="ratingsVotes")
    watched: bool = False
    in_watchlist: bool = Field(default=False, alias="inWatchlist")
    in_collection: bool = Field(default=False, alias="inCollection")

    @field_validator("tmdb_id", mode="before")
    @classmethod
    def _normalise_tmdb_id(cls, value: object) -> str:
        if value is None or isinstance(value, bool):
            raise ValueError("tmdb_id is required")
        text = str(value).strip()
        if not text:
            raise ValueError("tmdb_id is required")
        return text

    @classmethod
    def from_trakt_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        in_watchlist: bool | None = None,
    ) -> MovieRecord:
        """Build a record from a Trakt movie payload.

        Accepts the bare movie object as well as list entries wrapping it in a
        ``movie`` key (watchlist and trending responses do this). Both the
        legacy flat identifiers (``tmdb_id``) and the nested ``ids`` block are
        understood. Raises ``ValueError`` when no TMDb identifier is present.
        """

        movie = payload.get("movie")
        if isinstance(movie, Mapping):
            payload = movie

        ids = payload.get("ids")
        if not isinstance(ids, Mapping):
            ids = {}
        images = payload.get("images")
        if not isinstance(images, Mapping):
            images = {}
        ratings = payload.get("ratings")
        if not isinstance(ratings, Mapping):
            ratings = {}

        percentage = ratings.get("percentage")
        if percentage is None:
            rating = _coerce_float(payload.get("rating"))
            if rating is not None and math.isfinite(rating):
                percentage = round(rating * 10)
        votes = ratings.get("votes", payload.get("votes"))

        flag = payload.get("in_watchlist")
        if in_watchlist is not None:
            flag = in_watchlist

        return cls(
            tmdb_id=payload.get("tmdb_id") or ids.get("tmdb"),
            imdb_id=payload.get("imdb_id") or ids.get("imdb"),
            title=payload.get("title"),
            year=_coerce_int(payload.get("year")),
            released=_parse_released(payload.get("released")),
            url=payload.get("url"),
            trailer=payload.get("trailer"),
            runtime=_coerce_int(payload.get("runtime")),
            tagline=payload.get("tagline"),
            overview=payload.get("overview"),
            certification=payload.get("certification"),
            poster=_pick_image(images.get("poster")),
            fanart=_pick_image(images.get("fanart")),
            ratings_percentage=_coerce_int(percentage),
            ratings_votes=_coerce_int(votes),
            watched=bool(payload.get("watched", False)),
            in_watchlist=bool(flag),
            in_collection=bool(payload.get("in_collection", False)),
        )

    def to_row_values(self) -> dict[str, Any]:
        """Return the column values persisted for this record."""

        return {name: getattr(self, name) for name in ROW_FIELDS}


def _coerce_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _coerce_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_released(value: Any) -> datetime | None:
    """Parse epoch seconds or an ISO date into a naive UTC datetime."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not value > 0:
            return None
        try:
            stamp = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return stamp.replace(tzinfo=None)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isdecimal():
            return _parse_released(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except (OverflowError, ValueError):
            return None
        return parsed
    return None


def _pick_image(value: Any) -> str | None:
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        for key in ("full", "medium", "thumb"):
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate:
                return candidate
        return None
    if isinstance(value, (list, tuple)):
        for candidate in value:
            if isinstance(candidate, str) and candidate:
                return candidate if candidate.startswith("http") else f"https://{candidate}"
    return None
