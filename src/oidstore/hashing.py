"""Content hashing for oidstore.

An object id (oid) is the SHA256 digest of a payload's exact bytes, encoded
as URL-safe base64 without padding. Identical bytes always produce the same
oid, so the oid doubles as a duplicate detector within a repository.
"""

from __future__ import annotations

import base64
import hashlib
import re
from typing import Final

OID_LENGTH: Final[int] = 43

_OID_PATTERN = re.compile(r"[A-Za-z0-9_\-]{43}")


def compute_oid(payload: bytes) -> str:
    """Compute the object id for a payload.

    Args:
        payload: Raw object content. May be empty.

    Returns:
        43-character URL-safe base64 SHA256 digest, unpadded.
    """
    digest = hashlib.sha256(payload).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def is_well_formed_oid(value: str) -> bool:
    """Return True if value has the shape of an oid produced by compute_oid."""
    return _OID_PATTERN.fullmatch(value) is not None
