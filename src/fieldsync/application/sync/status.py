"""
Status Aggregator - Display summary over the queue and candidate store.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...core.domain.entities import OperationKind, SyncStatus, utcnow
from ...core.exceptions import PersistenceError
from ...core.ports.candidate_store import CandidateStorePort
from ...core.ports.storage import StoragePort
from ..queue.store import DurableQueueStore
from .scheduler import PeriodicTask


class StatusAggregator:
    """
    Derives SyncStatus on demand.

    The only side effect is an optional cache of the last snapshot, used to
    show something meaningful before the stores are loaded on cold start.
    """

    CACHE_KEY = "sync_status"

    def __init__(
        self,
        queue: DurableQueueStore,
        candidates: CandidateStorePort,
        storage: Optional[StoragePort] = None,
        timer: Optional[PeriodicTask] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.queue = queue
        self.candidates = candidates
        self.storage = storage
        self.timer = timer
        self.clock = clock
        self.logger = logging.getLogger("StatusAggregator")

        self.last_sync: Optional[datetime] = None

    def record_sync(self, at: Optional[datetime] = None) -> None:
        """Remember when the last drain finished."""
        self.last_sync = at or self.clock()

    def compute_status(self) -> SyncStatus:
        """Project the current stores into a SyncStatus."""
        records = self.candidates.list_candidates()
        present = [r for r in records if r.present]

        next_sync = None
        if self.timer is not None and self.timer.is_running:
            next_sync = self.clock() + timedelta(seconds=self.timer.interval)

        return SyncStatus(
            total_registered=len(present),
            synced=sum(1 for r in present if r.is_synced),
            pending=self.queue.size(),
            verified=sum(1 for r in records if r.verified),
            pending_verification=self.queue.count_by_kind(OperationKind.VERIFICATION_SYNC),
            last_sync=self.last_sync,
            next_sync=next_sync,
        )

    def refresh(self) -> SyncStatus:
        """Compute the status and write it to the cache."""
        status = self.compute_status()
        if self.storage is not None:
            try:
                self.storage.save(self.CACHE_KEY, status.to_dict())
            except PersistenceError as e:
                self.logger.warning(f"Could not cache sync status: {e}")
        return status

    def load_cached(self) -> Optional[SyncStatus]:
        """Last cached snapshot, restoring last_sync from it."""
        if self.storage is None:
            return None
        data = self.storage.load(self.CACHE_KEY)
        if not data:
            return None
        status = SyncStatus.from_dict(data)
        if self.last_sync is None:
            self.last_sync = status.last_sync
        return status
