"""oidstore filesystem backend.

Provides durable local storage with:
- Repository isolation via one directory per repository
- Write-once semantics that hold across threads and processes
- Path traversal protection

The base directory is passed in by the caller (see storage.config); without
one the backend uses DEFAULT_BASE_DIR.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import uuid
from pathlib import Path

from oidstore.storage.backend import ObjectBackend
from oidstore.storage.errors import PathTraversalError, StorageBackendError
from oidstore.storage.models import StorageKey

logger = logging.getLogger(__name__)

DEFAULT_BASE_DIR = Path(tempfile.gettempdir()) / "oidstore_objects"

_CONTENT_SUFFIX = ".data"
_TMP_SUFFIX = ".tmp"


def _repository_dirname(repository: str) -> str:
    """Map a repository name to a filesystem-safe directory name."""
    return hashlib.sha256(repository.encode("utf-8")).hexdigest()


class FilesystemObjectBackend(ObjectBackend):
    """Filesystem-based write-once backend.

    Objects are stored in a directory structure:
        {base_dir}/{sha256(repository)}/
            {oid}.data          # content

    A payload is first written to a unique temp file and then hard-linked
    to its final name. The link fails if the name exists, which makes the
    existence check and the insert a single atomic filesystem operation.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. Defaults to DEFAULT_BASE_DIR.
        """
        self._base_dir = Path(base_dir if base_dir is not None else DEFAULT_BASE_DIR).resolve()
        logger.debug("FilesystemObjectBackend initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    def _repository_dir(self, key: StorageKey) -> Path:
        return self._base_dir / _repository_dirname(key.repository)

    def _content_path(self, key: StorageKey) -> Path:
        """Resolve the content file for a key, ensuring it stays under base_dir."""
        path = (self._repository_dir(key) / f"{key.oid}{_CONTENT_SUFFIX}").resolve()
        try:
            path.relative_to(self._base_dir)
        except ValueError as e:
            raise PathTraversalError(
                message="Path resolves outside storage base directory",
                repository=key.repository,
                oid=key.oid,
            ) from e
        return path

    def insert_if_absent(self, key: StorageKey, payload: bytes) -> bool:
        """Store payload under key unless present."""
        content_path = self._content_path(key)
        repo_dir = content_path.parent

        if content_path.exists():
            return False

        try:
            repo_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to create repository directory: {e}",
                repository=key.repository,
                oid=key.oid,
                cause=e,
            ) from e

        tmp_path = repo_dir / f".{key.oid}.{uuid.uuid4().hex}{_TMP_SUFFIX}"
        try:
            tmp_path.write_bytes(payload)
            os.link(tmp_path, content_path)
        except FileExistsError:
            logger.debug("Lost insert race: repository=%s oid=%s", key.repository, key.oid)
            return False
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to write content: {e}",
                repository=key.repository,
                oid=key.oid,
                cause=e,
            ) from e
        finally:
            tmp_path.unlink(missing_ok=True)

        return True

    def fetch(self, key: StorageKey) -> bytes | None:
        """Read the payload stored under key."""
        content_path = self._content_path(key)
        try:
            return content_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to read content: {e}",
                repository=key.repository,
                oid=key.oid,
                cause=e,
            ) from e
