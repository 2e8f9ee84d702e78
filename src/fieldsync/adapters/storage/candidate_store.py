"""
Storage Candidate Store - CandidateStorePort persisted through a StoragePort.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ...core.domain.entities import CandidateRecord, CandidateSyncState, utcnow
from ...core.ports.candidate_store import CandidateStorePort
from ...core.ports.storage import StoragePort


class StorageCandidateStore(CandidateStorePort):
    """
    Candidate records kept as one list under a single storage key.

    Every mutation is written through before returning.
    """

    STORAGE_KEY = "candidates"

    def __init__(
        self,
        storage: StoragePort,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.clock = clock
        self.logger = logging.getLogger("CandidateStore")
        self._lock = threading.RLock()
        self._records: dict[str, CandidateRecord] = {}
        self._loaded = False

    def load(self) -> int:
        """Load persisted candidates. Returns the number loaded."""
        with self._lock:
            data = self.storage.load(self.STORAGE_KEY) or []
            self._records = {}
            for item in data:
                record = CandidateRecord.from_dict(item)
                self._records[record.candidate_id] = record
            self._loaded = True
            self.logger.debug(f"Loaded {len(self._records)} candidates")
            return len(self._records)

    # -------------------------------------------------------------------------
    # CandidateStorePort Implementation
    # -------------------------------------------------------------------------

    def list_candidates(self) -> list[CandidateRecord]:
        with self._lock:
            self._ensure_loaded()
            return list(self._records.values())

    def get(self, candidate_id: str) -> Optional[CandidateRecord]:
        with self._lock:
            self._ensure_loaded()
            return self._records.get(str(candidate_id))

    def record_attendance(
        self,
        candidate_id: str,
        name: str = "",
        present: bool = True,
    ) -> CandidateRecord:
        with self._lock:
            record = self._get_or_create(str(candidate_id), name)
            record.present = present
            return self._touch(record)

    def record_verification(
        self,
        candidate_id: str,
        verified: bool,
    ) -> CandidateRecord:
        with self._lock:
            record = self._get_or_create(str(candidate_id))
            record.verified = verified
            return self._touch(record)

    def mark_synced(self, candidate_id: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            record = self._records.get(str(candidate_id))
            if record is None:
                return False
            record.sync_state = CandidateSyncState.SYNCED
            self._persist()
            return True

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _get_or_create(self, candidate_id: str, name: str = "") -> CandidateRecord:
        self._ensure_loaded()
        record = self._records.get(candidate_id)
        if record is None:
            record = CandidateRecord(candidate_id=candidate_id, name=name)
            self._records[candidate_id] = record
        elif name:
            record.name = name
        return record

    def _touch(self, record: CandidateRecord) -> CandidateRecord:
        record.sync_state = CandidateSyncState.PENDING
        record.last_updated = self.clock()
        self._persist()
        return record

    def _persist(self) -> None:
        self.storage.save(
            self.STORAGE_KEY,
            [record.to_dict() for record in self._records.values()],
        )
