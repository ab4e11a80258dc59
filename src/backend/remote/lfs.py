"""
Git LFS pointer detection and parsing.

A pointer stub looks like:

    version https://git-lfs.github.com/spec/v1
    oid sha256:4d7a214614ab2935c943f9e0ff69d22eadbb8f32b1258daaa5e2ca24d17e2393
    size 12345
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from src.shared.errors import DecodeError


LFS_SIGNATURE = b"version https://git-lfs.github.com/spec/v1"

# Pointer files are tiny; anything larger is real content.
MAX_POINTER_SIZE = 1024

OID_PATTERN = re.compile(r"^oid sha256:([0-9a-fA-F]{64})$")
SIZE_PATTERN = re.compile(r"^size (\d+)$")


@dataclass(frozen=True)
class LfsPointer:
    oid: str
    size: Optional[int] = None


def is_lfs_pointer(payload: bytes) -> bool:
    return len(payload) <= MAX_POINTER_SIZE and payload.lstrip().startswith(LFS_SIGNATURE)


def parse_lfs_pointer(payload: bytes) -> LfsPointer:
    """
    Raises:
        DecodeError: payload is not a pointer or lacks a sha256 oid.
    """
    if not is_lfs_pointer(payload):
        raise DecodeError("payload is not a Git LFS pointer")

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Failed to parse LFS pointer: {exc}") from exc

    oid: Optional[str] = None
    size: Optional[int] = None
    for line in text.splitlines():
        line = line.strip()
        m = OID_PATTERN.match(line)
        if m:
            oid = m.group(1).lower()
            continue
        m = SIZE_PATTERN.match(line)
        if m:
            size = int(m.group(1))

    if oid is None:
        raise DecodeError("Failed to parse LFS pointer: missing 'oid sha256:' line")
    return LfsPointer(oid=oid, size=size)
