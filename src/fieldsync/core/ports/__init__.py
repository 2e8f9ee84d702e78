"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .storage import StoragePort
from .transport import TransportPort
from .candidate_store import CandidateStorePort
from .biometric import BiometricBridgePort, CaptureResult, MatchResult
from .config_provider import (
    ConfigProviderPort,
    AppConfig,
    RetryPolicy,
    SyncConfig,
    TransportConfig,
)

__all__ = [
    "StoragePort",
    "TransportPort",
    "CandidateStorePort",
    "BiometricBridgePort",
    "CaptureResult",
    "MatchResult",
    "ConfigProviderPort",
    "AppConfig",
    "RetryPolicy",
    "SyncConfig",
    "TransportConfig",
]
