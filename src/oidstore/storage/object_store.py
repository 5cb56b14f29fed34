"""oidstore ObjectStore: content-addressed, write-once storage.

The ObjectStore owns the (repository, oid) -> bytes mapping through a
pluggable ObjectBackend. One instance is built at process start and shared by
all request handlers.
"""

from __future__ import annotations

import logging

from oidstore.hashing import compute_oid, is_well_formed_oid
from oidstore.storage.backend import ObjectBackend
from oidstore.storage.errors import (
    DuplicateObjectError,
    InvalidRepositoryError,
    ObjectNotFoundError,
)
from oidstore.storage.memory_backend import InMemoryObjectBackend
from oidstore.storage.models import PutResult, StorageKey
from oidstore.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)


def normalize_repository(repository: str) -> str:
    """Strip surrounding whitespace from a repository name.

    Raises:
        InvalidRepositoryError: If nothing is left after stripping.
    """
    normalized = repository.strip()
    if not normalized:
        raise InvalidRepositoryError(repository=repository)
    return normalized


class ObjectStore:
    """Content-addressed object store partitioned by repository.

    Guarantees:
    - oid is a pure function of the payload bytes
    - a (repository, oid) pair is written at most once; the first writer
      wins and later identical puts raise DuplicateObjectError
    - stored bytes are returned unchanged and are never mutated or deleted
    """

    def __init__(self, backend: ObjectBackend | None = None) -> None:
        """Initialize the store.

        Args:
            backend: Persistence backend. Defaults to a fresh in-memory backend.
        """
        self._backend = backend if backend is not None else InMemoryObjectBackend()

    @property
    def backend(self) -> ObjectBackend:
        """Return the persistence backend."""
        return self._backend

    @property
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        return self._backend.backend_name

    @traced_storage_operation("put")
    def put(self, repository: str, payload: bytes) -> PutResult:
        """Store a payload under a repository.

        Args:
            repository: Repository namespace. Surrounding whitespace is ignored.
            payload: Object content as bytes. May be empty.

        Returns:
            PutResult with the oid and the payload size.

        Raises:
            InvalidRepositoryError: If repository is empty or whitespace-only.
            DuplicateObjectError: If identical content already exists in the repository.
            StorageBackendError: If the backend cannot complete the write.
        """
        repo = normalize_repository(repository)
        oid = compute_oid(payload)
        key = StorageKey(repository=repo, oid=oid)

        if not self._backend.insert_if_absent(key, payload):
            logger.info("Duplicate object: repository=%s oid=%s", repo, oid)
            raise DuplicateObjectError(repository=repo, oid=oid)

        logger.debug(
            "Stored object: repository=%s oid=%s size=%d backend=%s",
            repo,
            oid,
            len(payload),
            self.backend_name,
        )
        return PutResult(oid=oid, size=len(payload))

    @traced_storage_operation("get")
    def get(self, repository: str, oid: str) -> bytes:
        """Retrieve a payload by repository and oid.

        Args:
            repository: Repository namespace. Surrounding whitespace is ignored.
            oid: Object id returned by put.

        Returns:
            The stored bytes, byte-for-byte.

        Raises:
            ObjectNotFoundError: If nothing is stored under (repository, oid),
                including for empty repositories and malformed oids.
            StorageBackendError: If the backend cannot complete the read.
        """
        repo = repository.strip()
        if not repo or not is_well_formed_oid(oid):
            logger.info("Object not found (malformed address): repository=%r oid=%r", repo, oid)
            raise ObjectNotFoundError(repository=repo or None, oid=oid or None)

        payload = self._backend.fetch(StorageKey(repository=repo, oid=oid))
        if payload is None:
            logger.info("Object not found: repository=%s oid=%s", repo, oid)
            raise ObjectNotFoundError(repository=repo, oid=oid)

        return payload
