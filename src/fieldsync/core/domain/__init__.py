"""
Domain - Entities and events of the offline sync engine.
"""

from .entities import (
    QueuedOperation,
    OperationKind,
    DroppedOperation,
    CandidateRecord,
    CandidateSyncState,
    DrainTrigger,
    SyncStatus,
    SyncLogEntry,
    utcnow,
)
from .events import (
    DomainEvent,
    EventBus,
    OperationEnqueued,
    OperationDelivered,
    OperationDeferred,
    OperationDropped,
    DrainStarted,
    DrainCompleted,
    WentOnline,
    WentOffline,
    EnteredForeground,
    EnteredBackground,
)

__all__ = [
    "QueuedOperation",
    "OperationKind",
    "DroppedOperation",
    "CandidateRecord",
    "CandidateSyncState",
    "DrainTrigger",
    "SyncStatus",
    "SyncLogEntry",
    "utcnow",
    "DomainEvent",
    "EventBus",
    "OperationEnqueued",
    "OperationDelivered",
    "OperationDeferred",
    "OperationDropped",
    "DrainStarted",
    "DrainCompleted",
    "WentOnline",
    "WentOffline",
    "EnteredForeground",
    "EnteredBackground",
]
