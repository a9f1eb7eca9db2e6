"""Watchlist reconciliation.

Given the remote watchlist snapshot and the identifiers already stored
locally, work out which records have to be inserted, which overwrite an
existing row and which rows have to go. The remote snapshot is always the
complete, authoritative list: an empty snapshot clears the local store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Iterable

from ..models import MovieRecord


@dataclass(slots=True, frozen=True)
class BatchPlan:
    """Operations needed to make the local store match a remote snapshot."""

    inserts: list[MovieRecord] = field(default_factory=list)
    updates: list[MovieRecord] = field(default_factory=list)
    deletes: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.updates or self.deletes)

    def __len__(self) -> int:
        return len(self.inserts) + len(self.updates) + len(self.deletes)

    def summary(self) -> dict[str, int]:
        return {
            "inserts": len(self.inserts),
            "updates": len(self.updates),
            "deletes": len(self.deletes),
        }


def plan(
    remote_records: Iterable[MovieRecord], local_ids: AbstractSet[str]
) -> BatchPlan:
    """Classify every remote record as insert or update and collect deletes.

    Records are matched on ``tmdb_id`` only. A matched record is always an
    update; fields are not compared. A ``tmdb_id`` repeated in the snapshot
    is classified by its first occurrence and every later occurrence becomes
    an update of that same id, so one id never produces two inserts.
    """

    remaining = set(local_ids)
    seen: set[str] = set()
    inserts: list[MovieRecord] = []
    updates: list[MovieRecord] = []

    for record in remote_records:
        tmdb_id = record.tmdb_id
        if tmdb_id in remaining:
            remaining.discard(tmdb_id)
            updates.append(record)
        elif tmdb_id in seen:
            updates.append(record)
        else:
            inserts.append(record)
        seen.add(tmdb_id)

    return BatchPlan(inserts=inserts, updates=updates, deletes=frozenset(remaining))
