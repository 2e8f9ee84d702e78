"""
Storage Port - Abstract key/value persistence for engine state.

Values are JSON-compatible structures. Every ``save`` must be durable
when it returns: a crash afterwards leaves the previous or the new value,
never a mix of both.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class StoragePort(ABC):
    """
    Abstract interface for durable key/value storage.

    Implementations raise PersistenceError on I/O failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the storage backend name."""
        ...

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """
        Read the value stored under key.

        Returns:
            The decoded value, or None if nothing is stored
        """
        ...

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Replace the value stored under key, durably."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is a no-op."""
        ...
