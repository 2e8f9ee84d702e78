"""
Domain Entities - The records the sync engine moves around.

Entities are plain dataclasses with dict round-tripping so they can be
written to any StoragePort as JSON.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utcnow() -> datetime:
    """Timezone-aware current time, the default clock."""
    return datetime.now(timezone.utc)


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class OperationKind(str, Enum):
    """Known operation kinds. Any string tag is accepted by the queue."""

    ATTENDANCE_SYNC = "attendance-sync"
    VERIFICATION_SYNC = "verification-sync"


class CandidateSyncState(str, Enum):
    """Whether the latest local change for a candidate reached the server."""

    PENDING = "pending"
    SYNCED = "synced"


class DrainTrigger(str, Enum):
    """What woke the orchestrator."""

    TIMER = "timer"
    ONLINE = "online"
    MANUAL = "manual"


@dataclass
class QueuedOperation:
    """
    One unit of outbound work.

    ``retry_count`` counts orchestrator runs that ended with this operation
    still pending. It survives restarts, unlike the executor's per-call
    attempt counter.
    """

    id: str
    kind: str
    endpoint: str
    method: str = "POST"
    payload: dict[str, Any] = field(default_factory=dict)
    enqueued_at: datetime = field(default_factory=utcnow)
    retry_count: int = 0

    @property
    def candidate_id(self) -> Optional[str]:
        """Candidate this operation reports on, if the payload names one."""
        value = self.payload.get("candidate_id")
        return str(value) if value is not None else None

    def describe(self) -> str:
        return f"{self.kind} {self.method} {self.endpoint} [{self.id}]"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "endpoint": self.endpoint,
            "method": self.method,
            "payload": self.payload,
            "enqueued_at": _format_time(self.enqueued_at),
            "retry_count": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueuedOperation":
        return cls(
            id=data["id"],
            kind=data["kind"],
            endpoint=data["endpoint"],
            method=data.get("method", "POST"),
            payload=data.get("payload") or {},
            enqueued_at=_parse_time(data.get("enqueued_at")) or utcnow(),
            retry_count=int(data.get("retry_count", 0)),
        )


@dataclass
class DroppedOperation:
    """An operation removed from the queue without being delivered."""

    operation: QueuedOperation
    reason: str
    dropped_at: datetime = field(default_factory=utcnow)


@dataclass
class CandidateRecord:
    """Local view of a candidate's attendance and verification."""

    candidate_id: str
    name: str = ""
    present: bool = False
    verified: bool = False
    sync_state: CandidateSyncState = CandidateSyncState.PENDING
    last_updated: datetime = field(default_factory=utcnow)

    @property
    def is_synced(self) -> bool:
        return self.sync_state == CandidateSyncState.SYNCED

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "name": self.name,
            "present": self.present,
            "verified": self.verified,
            "sync_state": self.sync_state.value,
            "last_updated": _format_time(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CandidateRecord":
        return cls(
            candidate_id=str(data["candidate_id"]),
            name=data.get("name", ""),
            present=bool(data.get("present", False)),
            verified=bool(data.get("verified", False)),
            sync_state=CandidateSyncState(data.get("sync_state", "pending")),
            last_updated=_parse_time(data.get("last_updated")) or utcnow(),
        )


@dataclass
class SyncStatus:
    """
    Display summary derived from the queue and the candidate store.

    Never the source of truth for delivery state.
    """

    total_registered: int = 0
    synced: int = 0
    pending: int = 0
    verified: int = 0
    pending_verification: int = 0
    last_sync: Optional[datetime] = None
    next_sync: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_sync"] = _format_time(self.last_sync)
        data["next_sync"] = _format_time(self.next_sync)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncStatus":
        return cls(
            total_registered=int(data.get("total_registered", 0)),
            synced=int(data.get("synced", 0)),
            pending=int(data.get("pending", 0)),
            verified=int(data.get("verified", 0)),
            pending_verification=int(data.get("pending_verification", 0)),
            last_sync=_parse_time(data.get("last_sync")),
            next_sync=_parse_time(data.get("next_sync")),
        )


@dataclass
class SyncLogEntry:
    """One line of the drain history."""

    sync_id: str
    timestamp: datetime
    trigger: str
    status: str  # success, partial, failed, skipped
    synced: int = 0
    failed: int = 0
    deferred: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = _format_time(self.timestamp)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncLogEntry":
        return cls(
            sync_id=data["sync_id"],
            timestamp=_parse_time(data.get("timestamp")) or utcnow(),
            trigger=data.get("trigger", DrainTrigger.MANUAL.value),
            status=data.get("status", "success"),
            synced=int(data.get("synced", 0)),
            failed=int(data.get("failed", 0)),
            deferred=int(data.get("deferred", 0)),
            error=data.get("error"),
        )
