"""oidstore in-memory backend.

Keeps objects in a dict for the lifetime of the process. Nothing survives a
restart. Thread-safe for concurrent access within a single process.
"""

from __future__ import annotations

import threading

from oidstore.storage.backend import ObjectBackend
from oidstore.storage.models import StorageKey


class InMemoryObjectBackend(ObjectBackend):
    """Dict-backed write-once backend guarded by a single lock."""

    def __init__(self) -> None:
        self._objects: dict[StorageKey, bytes] = {}
        self._lock = threading.Lock()

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "memory"

    def insert_if_absent(self, key: StorageKey, payload: bytes) -> bool:
        """Store payload under key unless present (check and insert under one lock)."""
        with self._lock:
            if key in self._objects:
                return False
            self._objects[key] = bytes(payload)
            return True

    def fetch(self, key: StorageKey) -> bytes | None:
        """Read the payload stored under key."""
        with self._lock:
            return self._objects.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
