"""
Storage Adapters - Implementations of StoragePort and CandidateStorePort.
"""

from .json_file import JsonFileStorage
from .memory import InMemoryStorage
from .candidate_store import StorageCandidateStore

__all__ = [
    "JsonFileStorage",
    "InMemoryStorage",
    "StorageCandidateStore",
]
