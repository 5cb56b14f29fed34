"""oidstore object storage error types.

Provides typed exceptions for storage operations. Every failure is reported
to the caller; none of these are swallowed inside the store.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        repository: Repository associated with the operation (if applicable).
        oid: Object id associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        repository: str | None = None,
        oid: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.repository = repository
        self.oid = oid

    def __str__(self) -> str:
        parts = [self.message]
        if self.repository:
            parts.append(f"repository={self.repository}")
        if self.oid:
            parts.append(f"oid={self.oid}")
        return " ".join(parts)


class InvalidRepositoryError(ObjectStorageError):
    """Raised when a repository name is empty or whitespace-only."""

    def __init__(
        self,
        message: str = "Invalid repository name",
        *,
        repository: str | None = None,
    ) -> None:
        super().__init__(message, repository=repository)


class DuplicateObjectError(ObjectStorageError):
    """Raised when an oid is already stored under the repository.

    Since the oid is derived from content, this means the exact same bytes
    are already present. Callers may treat it as "already stored".
    """

    def __init__(
        self,
        message: str = "Object already exists in this repository",
        *,
        repository: str | None = None,
        oid: str | None = None,
    ) -> None:
        super().__init__(message, repository=repository, oid=oid)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when no object is stored under (repository, oid)."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        repository: str | None = None,
        oid: str | None = None,
    ) -> None:
        super().__init__(message, repository=repository, oid=oid)


class PathTraversalError(ObjectStorageError):
    """Raised when a backend path would resolve outside its base directory."""

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        repository: str | None = None,
        oid: str | None = None,
    ) -> None:
        super().__init__(message, repository=repository, oid=oid)


class StorageBackendError(ObjectStorageError):
    """Raised when the storage backend cannot complete an operation.

    This indicates the backend itself failed (disk full, permission denied,
    I/O error) rather than a logical outcome like a duplicate or a miss.
    """

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        repository: str | None = None,
        oid: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, repository=repository, oid=oid)
        self.cause = cause
