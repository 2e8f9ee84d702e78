"""
Adapters - Concrete implementations of ports.

This module contains implementations for:
- Transport: HTTP (requests)
- Storage: JSON files, in-memory
- Candidate store: over any StoragePort
- Config: Environment variables
"""

from .http import HttpTransport, RemoteApiClient
from .storage import JsonFileStorage, InMemoryStorage, StorageCandidateStore
from .config import EnvironmentConfigProvider

__all__ = [
    "HttpTransport",
    "RemoteApiClient",
    "JsonFileStorage",
    "InMemoryStorage",
    "StorageCandidateStore",
    "EnvironmentConfigProvider",
]
