"""
Single-attempt HTTP GET over urllib, mapped onto the content error taxonomy.

The blocking call runs in a worker thread so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional
from urllib import error as urllib_error
from urllib.request import Request, urlopen

from src.shared.errors import DecodeError, HTTPError, NetworkError


DEFAULT_USER_AGENT = "skatefit-content-sync/0.1"

# Async transport used by the remote client: (url, headers) -> body bytes
FetchFunc = Callable[[str, Mapping[str, str]], Awaitable[bytes]]

logger = logging.getLogger(__name__)


def _error_message(exc: urllib_error.HTTPError) -> Optional[str]:
    """Best-effort `message` field from a JSON error body, else the reason phrase."""
    try:
        body = exc.read()
    except (OSError, ValueError):
        body = b""
    if body:
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
    return str(exc.reason) if exc.reason else None


def get_bytes(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    *,
    timeout_s: Optional[float] = None,
) -> bytes:
    """
    GET `url` once and return the body.

    Raises:
        HTTPError: non-2xx response.
        NetworkError: transport failure (DNS, refused, reset, timeout).
    """
    merged = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "*/*"}
    merged.update(headers or {})
    req = Request(url, headers=merged)

    logger.debug("GET %s", url)
    try:
        if timeout_s is None:
            resp_cm = urlopen(req)
        else:
            resp_cm = urlopen(req, timeout=timeout_s)
        with resp_cm as resp:
            status = int(getattr(resp, "status", 200) or 200)
            body = resp.read()
    except urllib_error.HTTPError as exc:
        raise HTTPError(int(exc.code), _error_message(exc)) from exc
    except urllib_error.URLError as exc:
        raise NetworkError(f"request to {url} failed: {exc.reason}") from exc
    except OSError as exc:
        raise NetworkError(f"request to {url} failed: {exc}") from exc

    if not 200 <= status < 300:
        raise HTTPError(status, None)
    return body


def make_fetch(*, timeout_s: Optional[float] = None) -> FetchFunc:
    """
    Build the default async transport: urllib GET in a worker thread.
    """

    async def _fetch(url: str, headers: Mapping[str, str]) -> bytes:
        return await asyncio.to_thread(get_bytes, url, headers, timeout_s=timeout_s)

    return _fetch


def decode_json_object(data: bytes, *, what: str) -> dict[str, Any]:
    """
    Parse a JSON object body.

    Raises:
        DecodeError: body is not JSON or not an object.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"{what}: response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DecodeError(f"{what}: expected a JSON object")
    return payload
