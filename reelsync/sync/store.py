"""Persistent movie store backing the local watchlist mirror."""

from __future__ import annotations

import logging
from typing import AbstractSet, Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import MovieRow
from ..models import ROW_FIELDS, MovieRecord

logger = logging.getLogger(__name__)


class BatchApplyError(RuntimeError):
    """Raised when a batch could not be committed; nothing was written."""


class MovieStore:
    """Movie rows keyed by their TMDb identifier."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_known_ids(self) -> set[str]:
        """Return the TMDb ids of every stored movie."""

        async with self._session_factory() as session:
            result = await session.execute(select(MovieRow.tmdb_id))
            return {row[0] for row in result.all()}

    async def list_movies(self) -> list[MovieRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MovieRow).order_by(MovieRow.title, MovieRow.tmdb_id)
            )
            return [self._row_to_record(row) for row in result.scalars().all()]

    async def get_movie(self, tmdb_id: str) -> MovieRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MovieRow).where(MovieRow.tmdb_id == tmdb_id)
            )
            row = result.scalar_one_or_none()
            return self._row_to_record(row) if row is not None else None

    async def apply_batch(
        self,
        inserts: Sequence[MovieRecord],
        updates: Sequence[MovieRecord],
        deletes: AbstractSet[str],
    ) -> None:
        """Write inserts, then updates, then deletes in a single transaction.

        Either every operation commits or none does; on failure the
        transaction is rolled back and ``BatchApplyError`` is raised.
        """

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    if inserts:
                        await session.execute(
                            insert(MovieRow),
                            [record.to_row_values() for record in inserts],
                        )
                    for record in updates:
                        await session.execute(
                            update(MovieRow)
                            .where(MovieRow.tmdb_id == record.tmdb_id)
                            .values(**record.to_row_values())
                        )
                    if deletes:
                        await session.execute(
                            delete(MovieRow).where(MovieRow.tmdb_id.in_(sorted(deletes)))
                        )
        except SQLAlchemyError as exc:
            raise BatchApplyError("Problem applying batch operation") from exc

        logger.debug(
            "Applied batch: %s inserts, %s updates, %s deletes",
            len(inserts),
            len(updates),
            len(deletes),
        )

    @staticmethod
    def _row_to_record(row: MovieRow) -> MovieRecord:
        return MovieRecord(**{name: getattr(row, name) for name in ROW_FIELDS})
