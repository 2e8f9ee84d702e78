"""
Sync Module - Draining the offline queue under changing connectivity.
"""

from .orchestrator import SyncOrchestrator, DrainResult, DrainState
from .monitor import ConnectivityMonitor, AppState
from .scheduler import PeriodicTask, TimerHandle
from .status import StatusAggregator
from .history import SyncHistory

__all__ = [
    "SyncOrchestrator",
    "DrainResult",
    "DrainState",
    "ConnectivityMonitor",
    "AppState",
    "PeriodicTask",
    "TimerHandle",
    "StatusAggregator",
    # History
    "SyncHistory",
]
