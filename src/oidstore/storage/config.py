"""Object store configuration for oidstore.

Selects and builds the persistence backend from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from oidstore.storage.filesystem_backend import FilesystemObjectBackend
from oidstore.storage.memory_backend import InMemoryObjectBackend
from oidstore.storage.object_store import ObjectStore

OIDSTORE_OBJECT_STORE_BACKEND_ENV: Final[str] = "OIDSTORE_OBJECT_STORE_BACKEND"
OIDSTORE_OBJECT_STORE_BASE_DIR_ENV: Final[str] = "OIDSTORE_OBJECT_STORE_BASE_DIR"


class BackendKind(str, Enum):
    """Available persistence backends."""

    MEMORY = "memory"
    FILESYSTEM = "filesystem"


DEFAULT_BACKEND: Final[BackendKind] = BackendKind.MEMORY


class ObjectStoreConfigError(Exception):
    """Raised when object store configuration is invalid."""


@dataclass(frozen=True)
class ObjectStoreConfig:
    """Object store configuration (immutable).

    Attributes:
        backend: Which persistence backend to use.
        base_dir: Base directory for the filesystem backend. None selects
            FilesystemObjectBackend's DEFAULT_BASE_DIR.
    """

    backend: BackendKind
    base_dir: Path | None = None


def parse_backend_kind(raw: str) -> BackendKind:
    """Parse a backend name, case-insensitively.

    Raises:
        ObjectStoreConfigError: If the name is not a known backend.
    """
    value = raw.strip().lower()
    try:
        return BackendKind(value)
    except ValueError as e:
        allowed = ", ".join(kind.value for kind in BackendKind)
        raise ObjectStoreConfigError(
            f"{OIDSTORE_OBJECT_STORE_BACKEND_ENV} must be one of: {allowed}, got '{raw}'"
        ) from e


def load_object_store_config() -> ObjectStoreConfig:
    """Load object store configuration from environment variables.

    Environment variables:
        OIDSTORE_OBJECT_STORE_BACKEND: "memory" or "filesystem" (default: "memory")
        OIDSTORE_OBJECT_STORE_BASE_DIR: Base directory for the filesystem backend

    Returns:
        ObjectStoreConfig with validated values.

    Raises:
        ObjectStoreConfigError: If the backend name is unknown.
    """
    raw_backend = os.environ.get(OIDSTORE_OBJECT_STORE_BACKEND_ENV, "").strip()
    backend = parse_backend_kind(raw_backend) if raw_backend else DEFAULT_BACKEND

    raw_base_dir = os.environ.get(OIDSTORE_OBJECT_STORE_BASE_DIR_ENV, "").strip()
    base_dir = Path(raw_base_dir) if raw_base_dir else None

    return ObjectStoreConfig(backend=backend, base_dir=base_dir)


def create_object_store(config: ObjectStoreConfig | None = None) -> ObjectStore:
    """Build an ObjectStore for the given (or environment) configuration.

    Args:
        config: Store configuration. If None, loads from environment.

    Returns:
        ObjectStore wired to the configured backend.
    """
    if config is None:
        config = load_object_store_config()

    if config.backend == BackendKind.FILESYSTEM:
        return ObjectStore(FilesystemObjectBackend(base_dir=config.base_dir))
    return ObjectStore(InMemoryObjectBackend())
