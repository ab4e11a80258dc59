"""
Network utilities: urllib transport and fixed-delay retry.
"""

from .http import FetchFunc, decode_json_object, get_bytes, make_fetch
from .retry import RetryConfig, with_retry_async

__all__ = [
    "FetchFunc",
    "decode_json_object",
    "get_bytes",
    "make_fetch",
    "RetryConfig",
    "with_retry_async",
]
