from .client import FetchedManifest, RemoteContentClient
from .endpoints import RepoConfig, with_cache_buster
from .lfs import LfsPointer, is_lfs_pointer, parse_lfs_pointer

__all__ = [
    "FetchedManifest",
    "RemoteContentClient",
    "RepoConfig",
    "with_cache_buster",
    "LfsPointer",
    "is_lfs_pointer",
    "parse_lfs_pointer",
]
