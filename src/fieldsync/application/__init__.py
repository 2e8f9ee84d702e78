"""
Application Layer - Use cases and orchestration.

This layer contains:
- retry/: Error classification and retry/backoff execution
- queue/: Durable operation queue
- sync/: Orchestrator, timer, monitor, status and history
- verification: Biometric results recorded as queued operations
- service: The engine facade with init/shutdown
"""

from .retry import ErrorClassifier, RetryExecutor
from .queue import DurableQueueStore
from .sync import (
    SyncOrchestrator,
    DrainResult,
    ConnectivityMonitor,
    AppState,
    PeriodicTask,
    StatusAggregator,
    SyncHistory,
)
from .verification import VerificationRecorder, VerificationOutcome
from .service import SyncService

__all__ = [
    "ErrorClassifier",
    "RetryExecutor",
    "DurableQueueStore",
    "SyncOrchestrator",
    "DrainResult",
    "ConnectivityMonitor",
    "AppState",
    "PeriodicTask",
    "StatusAggregator",
    "SyncHistory",
    "VerificationRecorder",
    "VerificationOutcome",
    "SyncService",
]
