from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


_BYTE_UNITS = ("KB", "MB", "GB", "TB")


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_age_s(
    since: Optional[datetime],
    *,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Seconds elapsed since `since`, or None when it was never recorded.

    A timestamp in the future counts as age 0.
    """
    if since is None:
        return None

    if now is None:
        now = datetime.now(timezone.utc)

    age_s = (_ensure_utc(now) - _ensure_utc(since)).total_seconds()
    return max(0.0, float(age_s))


def is_stale(
    last_sync: Optional[datetime],
    threshold_s: float,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """
    A cache never synced is stale; otherwise stale once age > threshold.
    """
    age_s = compute_age_s(last_sync, now=now)
    if age_s is None:
        return True
    return age_s > float(threshold_s)


def format_byte_count(num_bytes: int) -> str:
    """
    Human-readable size with decimal (file-style) units: "0 bytes", "512 bytes", "1.5 MB".
    """
    size = max(0, int(num_bytes))
    if size < 1000:
        return "1 byte" if size == 1 else f"{size} bytes"

    value = float(size)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS:
        value /= 1000.0
        if value < 1000.0:
            break

    if value >= 100 or unit == "KB":
        return f"{value:.0f} {unit}"
    return f"{value:.1f} {unit}"
