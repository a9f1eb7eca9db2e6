"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class MovieRow(Base):
    """A movie mirrored from the user's remote watchlist."""

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tmdb_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    imdb_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    released: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    trailer: Mapped[str | None] = mapped_column(String(512), nullable=True)
    runtime: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tagline: Mapped[str | None] = mapped_column(Text, nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    certification: Mapped[str | None] = mapped_column(String(32), nullable=True)
    poster: Mapped[str | None] = mapped_column(String(512), nullable=True)
    fanart: Mapped[str | None] = mapped_column(String(512), nullable=True)
    ratings_percentage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ratings_votes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    watched: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_watchlist: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_collection: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
