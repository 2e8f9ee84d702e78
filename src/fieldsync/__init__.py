"""
fieldsync - Offline-first sync engine for field attendance and verification.
"""

__version__ = "0.1.0"

from .application import SyncService, DrainResult
from .core.ports.config_provider import AppConfig, RetryPolicy, SyncConfig, TransportConfig

__all__ = [
    "__version__",
    "SyncService",
    "DrainResult",
    "AppConfig",
    "RetryPolicy",
    "SyncConfig",
    "TransportConfig",
]
