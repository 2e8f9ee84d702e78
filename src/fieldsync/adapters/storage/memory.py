"""
In-Memory Storage - StoragePort for tests and throwaway runs.
"""

import copy
import json
import threading
from typing import Any, Optional

from ...core.exceptions import PersistenceError
from ...core.ports.storage import StoragePort


class InMemoryStorage(StoragePort):
    """
    Keeps values in a dict.

    Values are round-tripped through JSON on save so anything that would
    fail to serialize on disk fails here too.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()
        for key, value in (initial or {}).items():
            self.save(key, value)

    @property
    def name(self) -> str:
        return "In-memory"

    def load(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(copy.deepcopy(value))
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {key}: {e}", key=key, cause=e)
        with self._lock:
            self._data[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
