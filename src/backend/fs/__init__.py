"""
File system layer for the content cache.

Provides:
- Cache directory structure and atomic writes (storage.py)
- Persisted sync metadata (metadata.py)
- Content hashing for large-file payload checks (hashing.py)
"""

from .storage import CachePaths, ContentCacheStore
from .metadata import CacheMetadata, MetadataStore
from .hashing import compute_bytes_hash, matches_object

__all__ = [
    "CachePaths",
    "ContentCacheStore",
    "CacheMetadata",
    "MetadataStore",
    "compute_bytes_hash",
    "matches_object",
]
