"""
JSON File Storage - StoragePort backed by one JSON file per key.

Writes go to a temporary file in the same directory, are fsynced, then
renamed over the target. A crash mid-write leaves the previous file intact.
"""

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from ...core.exceptions import PersistenceError
from ...core.ports.storage import StoragePort


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStorage(StoragePort):
    """
    Durable key/value storage in a directory of JSON files.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path):
        """
        Initialize the storage.

        Args:
            directory: Data directory (created on first write)
        """
        self.directory = Path(directory)
        self.logger = logging.getLogger("JsonFileStorage")
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "JSON file"

    def path_for(self, key: str) -> Path:
        """Get the file backing a key."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def load(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Failed to read {path}: {e}")
            raise PersistenceError(f"Failed to read {key}: {e}", key=key, cause=e)

    def save(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        with self._lock:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{key}.", suffix=".tmp", dir=self.directory
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(value, f, indent=2)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp_name, path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except (OSError, TypeError, ValueError) as e:
                self.logger.error(f"Failed to write {path}: {e}")
                raise PersistenceError(f"Failed to write {key}: {e}", key=key, cause=e)

        self.logger.debug(f"Saved {key} to {path}")

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return
            except OSError as e:
                raise PersistenceError(f"Failed to delete {key}: {e}", key=key, cause=e)
