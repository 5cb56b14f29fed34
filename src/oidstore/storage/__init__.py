"""oidstore Object Storage.

Provides content-addressed, write-once object storage partitioned by
repository, with pluggable persistence backends.

Backends:
- InMemoryObjectBackend: process-lifetime dict (default)
- FilesystemObjectBackend: local filesystem, survives restarts

Environment Variables:
    OIDSTORE_OBJECT_STORE_BACKEND: "memory" or "filesystem" (default: "memory")
    OIDSTORE_OBJECT_STORE_BASE_DIR: Base directory for filesystem backend
        (default: OS temp dir / oidstore_objects)
"""

from oidstore.storage.backend import ObjectBackend
from oidstore.storage.config import (
    BackendKind,
    ObjectStoreConfig,
    ObjectStoreConfigError,
    create_object_store,
    load_object_store_config,
    parse_backend_kind,
)
from oidstore.storage.errors import (
    DuplicateObjectError,
    InvalidRepositoryError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    StorageBackendError,
)
from oidstore.storage.filesystem_backend import FilesystemObjectBackend
from oidstore.storage.memory_backend import InMemoryObjectBackend
from oidstore.storage.models import PutResult, StorageKey
from oidstore.storage.object_store import ObjectStore

__all__ = [
    "BackendKind",
    "ObjectBackend",
    "ObjectStore",
    "ObjectStoreConfig",
    "ObjectStoreConfigError",
    "InMemoryObjectBackend",
    "FilesystemObjectBackend",
    "PutResult",
    "StorageKey",
    "ObjectStorageError",
    "InvalidRepositoryError",
    "DuplicateObjectError",
    "ObjectNotFoundError",
    "PathTraversalError",
    "StorageBackendError",
    "create_object_store",
    "load_object_store_config",
    "parse_backend_kind",
]
