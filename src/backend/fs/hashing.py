"""
Content hashing for verifying resolved large-file-storage payloads.

Git LFS pointers identify their object by SHA-256 (`oid sha256:<hex>`) and
byte size, so a resolved payload can be checked against both.
"""

from __future__ import annotations

import hashlib


# Hash algorithm used by Git LFS object ids
HASH_ALGORITHM = "sha256"


def compute_bytes_hash(data: bytes) -> str:
    """
    Compute the SHA-256 hash of bytes.

    Returns:
        Lowercase hexadecimal hash string.
    """
    return hashlib.new(HASH_ALGORITHM, data).hexdigest()


def matches_object(data: bytes, *, oid: str, size: int | None = None) -> bool:
    """
    Check bytes against an expected object id (and size, when known).
    """
    if size is not None and len(data) != size:
        return False
    return compute_bytes_hash(data) == oid.strip().lower()
