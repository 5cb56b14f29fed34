"""oidstore object storage data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StorageKey:
    """Address of one stored object.

    A structured pair rather than a joined string, so a repository name
    containing any separator character cannot alias another (repository, oid).

    Attributes:
        repository: Stripped, non-empty repository name.
        oid: Object id (URL-safe base64 SHA256 of the content).
    """

    repository: str
    oid: str


@dataclass(frozen=True)
class PutResult:
    """Outcome of a successful put.

    Attributes:
        oid: Object id of the stored payload.
        size: Payload length in bytes.
    """

    oid: str
    size: int

    def to_dict(self) -> dict[str, str | int]:
        """Convert to the wire shape returned by the gateway."""
        return {"oid": self.oid, "size": self.size}
