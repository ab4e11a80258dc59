"""
Video asset name validation and normalization.

Rules:
- Names come from the remote manifest and map to `<cache_root>/videos/<name>`
- Only a bare file name is accepted: no path separators, no `.`/`..`, no NUL
- A name without an extension gets `.mp4` appended
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


DEFAULT_VIDEO_EXTENSION = ".mp4"

# A trailing ".<alnum>" counts as an extension ("squat.mov"); "v1.2-final" does not.
EXTENSION_PATTERN = re.compile(r"\.[A-Za-z0-9]{1,5}$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    file_name: Optional[str] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def validate_video_name(name: str) -> ValidationResult:
    """
    Validate a manifest video reference and return the normalized cache file name.
    """
    if name is None or not str(name).strip():
        return ValidationResult(valid=False, error="video name must not be empty")

    raw = str(name).strip()

    if "/" in raw or "\\" in raw:
        return ValidationResult(valid=False, error=f"video name must not contain path separators: {raw!r}")

    if "\x00" in raw:
        return ValidationResult(valid=False, error="video name must not contain NUL")

    if raw in (".", ".."):
        return ValidationResult(valid=False, error=f"invalid video name: {raw!r}")

    if not EXTENSION_PATTERN.search(raw):
        raw = raw + DEFAULT_VIDEO_EXTENSION

    return ValidationResult(valid=True, file_name=raw)


def normalize_video_name(name: str) -> str:
    """
    Like `validate_video_name`, but raises ValueError on invalid input.
    """
    result = validate_video_name(name)
    if not result:
        raise ValueError(result.error)
    return result.file_name  # type: ignore[return-value]
