"""
Fixed-delay retry for the force-refresh path.

Policy: a bounded number of attempts separated by a constant delay (not
exponential). Intermediate failures are logged; the last one is raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from src.shared.errors import ContentError

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_S = 0.5

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for fixed-delay retry.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1).
        delay_s: Constant delay between attempts.
        enabled: If False, exactly one attempt is made.
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_s: float = DEFAULT_DELAY_S
    enabled: bool = True

    def to_persist_dict(self) -> dict:
        return {
            "max_attempts": self.max_attempts,
            "delay_s": self.delay_s,
            "enabled": self.enabled,
        }

    @classmethod
    def from_persist_dict(cls, data: dict) -> "RetryConfig":
        max_attempts = data.get("max_attempts", DEFAULT_MAX_ATTEMPTS)
        delay = data.get("delay_s", DEFAULT_DELAY_S)
        enabled = data.get("enabled", True)

        try:
            max_attempts = int(max_attempts)
        except (TypeError, ValueError):
            max_attempts = DEFAULT_MAX_ATTEMPTS

        try:
            delay = float(delay)
        except (TypeError, ValueError):
            delay = DEFAULT_DELAY_S

        return cls(
            max_attempts=max(1, max_attempts),
            delay_s=max(0.0, delay),
            enabled=bool(enabled),
        )

    @property
    def attempts(self) -> int:
        return self.max_attempts if self.enabled else 1

    def compute_delay(self, attempt: int) -> float:
        """Delay before the attempt after `attempt` (0-indexed); constant."""
        return self.delay_s


async def with_retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    config: Optional[RetryConfig] = None,
    retry_on: Tuple[Type[BaseException], ...] = (ContentError,),
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
) -> T:
    """
    Await `func()` up to `config.attempts` times.

    Args:
        func: Zero-argument coroutine factory; called once per attempt.
        config: Retry configuration.
        retry_on: Exception types that trigger another attempt. Anything else
                  propagates immediately.
        on_retry: Optional callback called before each retry with
                  (attempt, exception, delay).

    Returns:
        The result of the first successful attempt.

    Raises:
        The last exception if all attempts fail.
    """
    cfg = config or RetryConfig()
    attempts = cfg.attempts

    for attempt in range(attempts):
        try:
            return await func()
        except retry_on as exc:
            if attempt + 1 >= attempts:
                raise
            delay = cfg.compute_delay(attempt)
            if on_retry:
                on_retry(attempt, exc, delay)
            else:
                logger.warning(
                    "Attempt %d/%d failed, retrying in %.2fs: %s",
                    attempt + 1,
                    attempts,
                    delay,
                    exc,
                )
            if delay > 0:
                await asyncio.sleep(delay)

    raise RuntimeError("Retry logic error: no result or exception")
