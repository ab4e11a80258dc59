
from __future__ import annotations

from .metrics import compute_age_s, format_byte_count, is_stale

__all__ = [
    "compute_age_s",
    "format_byte_count",
    "is_stale",
]
