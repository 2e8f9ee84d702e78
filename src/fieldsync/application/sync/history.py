"""
Sync History - Bounded, persisted log of drains.
"""

import logging
import threading
from typing import Optional

from ...core.domain.entities import SyncLogEntry
from ...core.ports.storage import StoragePort


class SyncHistory:
    """Keeps the most recent ``limit`` drain summaries, oldest evicted first."""

    STORAGE_KEY = "sync_history"

    def __init__(self, storage: StoragePort, limit: int = 100):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.storage = storage
        self.limit = limit
        self.logger = logging.getLogger("SyncHistory")
        self._lock = threading.Lock()
        self._entries: list[SyncLogEntry] = []

    def load(self) -> int:
        with self._lock:
            data = self.storage.load(self.STORAGE_KEY) or []
            self._entries = [SyncLogEntry.from_dict(item) for item in data][-self.limit:]
            return len(self._entries)

    def append(self, entry: SyncLogEntry) -> None:
        with self._lock:
            entries = (self._entries + [entry])[-self.limit:]
            self.storage.save(self.STORAGE_KEY, [e.to_dict() for e in entries])
            self._entries = entries

    def entries(self) -> list[SyncLogEntry]:
        """Newest last."""
        with self._lock:
            return list(self._entries)

    def last(self, status: Optional[str] = None) -> Optional[SyncLogEntry]:
        """Most recent entry, optionally with a given status."""
        with self._lock:
            for entry in reversed(self._entries):
                if status is None or entry.status == status:
                    return entry
        return None
