"""Watchlist mirroring: planning, applying and scheduling sync runs."""

from __future__ import annotations

from .coordinator import TaskCoordinator
from .credentials import CredentialGate
from .orchestrator import SyncOutcome, WatchlistSync
from .reconciler import BatchPlan, plan
from .service import WatchlistSyncService
from .store import BatchApplyError, MovieStore

__all__ = [
    "BatchApplyError",
    "BatchPlan",
    "CredentialGate",
    "MovieStore",
    "SyncOutcome",
    "TaskCoordinator",
    "WatchlistSync",
    "WatchlistSyncService",
    "plan",
]
