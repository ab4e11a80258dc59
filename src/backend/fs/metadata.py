"""
Persisted cache metadata (last sync, content version, update flag).

Stored as a small JSON document outside the cache root, so clearing the
cache directory and resetting metadata are separate, explicit steps.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from src.shared.errors import StorageError


UNKNOWN_VERSION = "unknown"

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc_z(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_utc(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class CacheMetadata:
    last_sync_timestamp: Optional[datetime] = None
    content_version: Optional[str] = None
    update_available: bool = False

    @property
    def current_version(self) -> str:
        """Stored version, or "unknown" when none was ever recorded."""
        return self.content_version or UNKNOWN_VERSION

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "last_sync_timestamp": (
                format_utc_z(self.last_sync_timestamp) if self.last_sync_timestamp is not None else None
            ),
            "content_version": self.content_version,
            "update_available": self.update_available,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "CacheMetadata":
        version = data.get("content_version")
        return cls(
            last_sync_timestamp=parse_utc(data.get("last_sync_timestamp")),
            content_version=(str(version) if version else None),
            update_available=bool(data.get("update_available", False)),
        )


class MetadataStore:
    """
    JSON-file key-value store for CacheMetadata.

    Reads never fail: a missing or malformed file loads as empty metadata.
    Writes are atomic (temp file + replace).
    """

    def __init__(self, *, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CacheMetadata:
        with self._lock:
            if not self._path.exists():
                return CacheMetadata()

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable cache metadata %s: %s", self._path, exc)
                return CacheMetadata()

            if not isinstance(raw, dict):
                return CacheMetadata()

            return CacheMetadata.from_persist_dict(raw)

    def save(self, meta: CacheMetadata) -> None:
        payload = meta.to_persist_dict()

        with self._lock:
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
                tmp_path.replace(self._path)
            except OSError as exc:
                raise StorageError(f"failed to write cache metadata {self._path}: {exc}") from exc

    def update(self, *, mutator) -> CacheMetadata:
        with self._lock:
            current = self.load()
            updated = mutator(current)
            if not isinstance(updated, CacheMetadata):
                raise TypeError("mutator must return CacheMetadata")
            self.save(updated)
            return updated

    def clear(self) -> None:
        with self._lock:
            try:
                self._path.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise StorageError(f"failed to clear cache metadata {self._path}: {exc}") from exc
