"""oidstore persistence backend interface.

Provides the ObjectBackend base class that every persistence engine must
implement. Backends know nothing about hashing or repository validation;
they only store bytes under a StorageKey, at most once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from oidstore.storage.models import StorageKey


class ObjectBackend(ABC):
    """Abstract base class for write-once persistence backends.

    Implementations must guarantee that insert_if_absent is atomic with
    respect to its own existence check: of several concurrent inserts for
    the same key, exactly one returns True.

    Implementations:
    - InMemoryObjectBackend: dict behind a lock, process lifetime only
    - FilesystemObjectBackend: one file per object under a base directory
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability.

        Returns:
            Backend name string (e.g., "memory", "filesystem").
        """
        ...

    @abstractmethod
    def insert_if_absent(self, key: StorageKey, payload: bytes) -> bool:
        """Store payload under key unless the key already exists.

        Args:
            key: Composite (repository, oid) address.
            payload: Object content as bytes.

        Returns:
            True if the payload was stored, False if the key already existed.
            An existing value is never modified.

        Raises:
            StorageBackendError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def fetch(self, key: StorageKey) -> bytes | None:
        """Read the payload stored under key.

        Args:
            key: Composite (repository, oid) address.

        Returns:
            The stored bytes, or None if nothing was stored under key.

        Raises:
            StorageBackendError: If the backend cannot complete the read.
        """
        ...
