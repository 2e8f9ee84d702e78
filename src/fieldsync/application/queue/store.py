"""
Durable Queue Store - Persisted FIFO of pending operations.

Every mutation builds the new contents, writes them through the
StoragePort and only then swaps them in. If the write fails the in-memory
queue is untouched and the error propagates, so memory and disk never
disagree past the last successful mutation.
"""

import copy
import dataclasses
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import uuid4

from ...core.domain.entities import QueuedOperation, utcnow
from ...core.exceptions import PersistenceError
from ...core.ports.storage import StoragePort


class DurableQueueStore:
    """
    Ordered collection of QueuedOperation, flushed on every change.

    Ids are unique within the store; order is insertion order.
    ``remove`` and ``increment_retry`` on an unknown id are no-ops.
    """

    STORAGE_KEY = "operation_queue"

    def __init__(
        self,
        storage: StoragePort,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ):
        """
        Initialize the store.

        Args:
            storage: Backing storage
            clock: Source of enqueue timestamps
            id_factory: Source of operation ids
        """
        self.storage = storage
        self.clock = clock
        self.id_factory = id_factory
        self.logger = logging.getLogger("DurableQueueStore")

        self._lock = threading.RLock()
        self._operations: list[QueuedOperation] = []

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> int:
        """
        Replace in-memory contents with the persisted queue.

        Returns:
            Number of operations loaded

        Raises:
            PersistenceError: if the stored queue cannot be read or decoded
        """
        with self._lock:
            raw = self.storage.load(self.STORAGE_KEY) or []
            try:
                operations = [QueuedOperation.from_dict(item) for item in raw]
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Stored queue is corrupt: {e}", key=self.STORAGE_KEY, cause=e
                )

            # A duplicate id can only come from a hand-edited file; keep the first.
            seen: set[str] = set()
            unique = []
            for op in operations:
                if op.id in seen:
                    self.logger.warning(f"Ignoring duplicate queued operation {op.id}")
                    continue
                seen.add(op.id)
                unique.append(op)

            self._operations = unique
            self.logger.info(f"Loaded {len(unique)} queued operations")
            return len(unique)

    def persist(self) -> None:
        """Flush the current contents."""
        with self._lock:
            self._write(self._operations)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def enqueue(
        self,
        kind: str,
        endpoint: str,
        method: str = "POST",
        payload: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Append an operation and persist it.

        Returns:
            The new operation id

        Raises:
            PersistenceError: the operation was not durably recorded
        """
        with self._lock:
            op_id = self._new_id()
            operation = QueuedOperation(
                id=op_id,
                kind=str(getattr(kind, "value", kind)),
                endpoint=endpoint,
                method=method.upper(),
                payload=copy.deepcopy(payload) if payload else {},
                enqueued_at=self.clock(),
            )
            self._commit(self._operations + [operation])

        self.logger.info(f"Queued {operation.describe()}")
        return op_id

    def remove(self, op_id: str) -> bool:
        """
        Remove an operation.

        Returns:
            False if no operation had this id
        """
        with self._lock:
            remaining = [op for op in self._operations if op.id != op_id]
            if len(remaining) == len(self._operations):
                return False
            self._commit(remaining)
        self.logger.debug(f"Removed operation {op_id}")
        return True

    def increment_retry(self, op_id: str) -> Optional[int]:
        """
        Bump an operation's queue-level retry counter.

        Returns:
            The new retry count, or None if the id is unknown
        """
        with self._lock:
            updated = []
            new_count = None
            for op in self._operations:
                if op.id == op_id:
                    op = dataclasses.replace(op, retry_count=op.retry_count + 1)
                    new_count = op.retry_count
                updated.append(op)
            if new_count is None:
                return None
            self._commit(updated)
        return new_count

    def clear(self) -> int:
        """Drop every queued operation. Returns how many were removed."""
        with self._lock:
            count = len(self._operations)
            self._commit([])
        self.logger.info(f"Cleared {count} queued operations")
        return count

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def drain_snapshot(self) -> list[QueuedOperation]:
        """Point-in-time copy of the queue in FIFO order."""
        with self._lock:
            return [copy.deepcopy(op) for op in self._operations]

    def get(self, op_id: str) -> Optional[QueuedOperation]:
        with self._lock:
            for op in self._operations:
                if op.id == op_id:
                    return copy.deepcopy(op)
        return None

    def has_candidate(self, candidate_id: str) -> bool:
        """True while any queued operation still carries this candidate_id."""
        candidate_id = str(candidate_id)
        with self._lock:
            return any(op.candidate_id == candidate_id for op in self._operations)

    def count_by_kind(self, kind: str) -> int:
        kind = str(getattr(kind, "value", kind))
        with self._lock:
            return sum(1 for op in self._operations if op.kind == kind)

    def size(self) -> int:
        with self._lock:
            return len(self._operations)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, op_id: object) -> bool:
        with self._lock:
            return any(op.id == op_id for op in self._operations)

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _new_id(self) -> str:
        existing = {op.id for op in self._operations}
        for _ in range(10):
            op_id = self.id_factory()
            if op_id not in existing:
                return op_id
        raise ValueError("id_factory keeps returning ids already in the queue")

    def _commit(self, operations: list[QueuedOperation]) -> None:
        self._write(operations)
        self._operations = operations

    def _write(self, operations: list[QueuedOperation]) -> None:
        try:
            self.storage.save(self.STORAGE_KEY, [op.to_dict() for op in operations])
        except PersistenceError:
            self.logger.error("Failed to persist operation queue")
            raise
