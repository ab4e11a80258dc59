"""
Content cache directory structure and storage.

Directory structure:
    <cache_root>/manifest.json
    <cache_root>/videos/<name>.mp4

Writes go to a temp file in the target directory followed by an atomic
replace, so readers never observe a partially written manifest or video.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import NamedTuple, Optional

from src.shared.errors import CorruptCache, DecodeError, StorageError
from src.shared.manifest import WorkoutManifest, parse_manifest_bytes
from src.shared.validators.video_name import normalize_video_name

from .metadata import CacheMetadata, MetadataStore


MANIFEST_FILE_NAME = "manifest.json"
VIDEOS_DIR_NAME = "videos"

logger = logging.getLogger(__name__)


class CachePaths(NamedTuple):
    """Paths of the content cache."""
    root: Path        # <cache_root>/
    manifest: Path    # <cache_root>/manifest.json
    videos: Path      # <cache_root>/videos/


class ContentCacheStore:
    """
    Filesystem-backed storage for the manifest and video assets, plus the
    last-sync/version metadata.

    Failures other than "not found" raise StorageError; nothing is retried here.
    """

    def __init__(self, cache_root: Path, *, metadata: MetadataStore):
        """
        Initialize the cache store.

        Args:
            cache_root: Root directory of the content cache.
            metadata: Store for CacheMetadata; lives outside cache_root.
        """
        root = Path(cache_root).resolve()
        self._paths = CachePaths(
            root=root,
            manifest=root / MANIFEST_FILE_NAME,
            videos=root / VIDEOS_DIR_NAME,
        )
        self._metadata = metadata

    @property
    def paths(self) -> CachePaths:
        return self._paths

    @property
    def cache_root(self) -> Path:
        return self._paths.root

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def read_manifest(self) -> Optional[WorkoutManifest]:
        """
        Read and parse the cached manifest.

        Returns:
            The manifest, or None if no manifest is cached.

        Raises:
            CorruptCache: The file exists but is not a valid manifest.
            StorageError: The file exists but cannot be read.
        """
        try:
            data = self._paths.manifest.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"failed to read {self._paths.manifest}: {exc}") from exc

        try:
            return parse_manifest_bytes(data)
        except DecodeError as exc:
            raise CorruptCache(f"cached manifest is unreadable: {exc}") from exc

    def write_manifest(self, data: bytes) -> Path:
        """
        Atomically replace the cached manifest. Metadata is left untouched.
        """
        self._atomic_write_bytes(self._paths.manifest, data)
        logger.debug("Cached manifest (%d bytes)", len(data))
        return self._paths.manifest

    def has_manifest(self) -> bool:
        return self._paths.manifest.is_file()

    def clear_manifest(self) -> None:
        """Remove only the cached manifest; videos and metadata stay."""
        try:
            self._paths.manifest.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"failed to remove {self._paths.manifest}: {exc}") from exc

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def video_path(self, name: str) -> Path:
        """
        Deterministic cache location for a video name.

        Raises:
            ValueError: If the name is empty or not a bare file name.
        """
        return self._paths.videos / normalize_video_name(name)

    def has_video(self, name: str) -> bool:
        return self.video_path(name).is_file()

    def write_video(self, name: str, data: bytes) -> Path:
        """
        Atomically write a video, creating the videos directory on demand.
        """
        path = self.video_path(name)
        self._atomic_write_bytes(path, data)
        logger.debug("Cached video %s (%d bytes)", path.name, len(data))
        return path

    # ------------------------------------------------------------------
    # Whole cache
    # ------------------------------------------------------------------

    def total_cache_size_bytes(self) -> int:
        """Recursive sum of file sizes under the cache root."""
        root = self._paths.root
        if not root.exists():
            return 0

        total = 0
        try:
            for path in root.rglob("*"):
                if path.is_file():
                    try:
                        total += path.stat().st_size
                    except FileNotFoundError:
                        continue
        except OSError as exc:
            raise StorageError(f"failed to scan {root}: {exc}") from exc
        return total

    def clear_all(self) -> None:
        """
        Remove the cache root (manifest and videos), recreate it empty, and
        reset metadata.
        """
        root = self._paths.root
        try:
            shutil.rmtree(root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"failed to remove cache root {root}: {exc}") from exc

        self._metadata.clear()

        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"failed to recreate cache root {root}: {exc}") from exc

        logger.info("Content cache cleared: %s", root)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def read_metadata(self) -> CacheMetadata:
        return self._metadata.load()

    def write_metadata(self, meta: CacheMetadata) -> None:
        self._metadata.save(meta)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _atomic_write_bytes(self, final_path: Path, content: bytes) -> None:
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path_str = tempfile.mkstemp(
                dir=str(final_path.parent),
                prefix=f".{final_path.name}.",
                suffix=".tmp",
            )
        except OSError as exc:
            raise StorageError(f"failed to prepare {final_path}: {exc}") from exc

        tmp_path = Path(tmp_path_str)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except OSError as exc:
            raise StorageError(f"failed to write {final_path}: {exc}") from exc
        finally:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
