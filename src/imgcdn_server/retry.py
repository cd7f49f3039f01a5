"""Backoff for upstream source fetches.

URL building is pure and never retries; only the proxy does, and only for
errors flagged ``retryable`` (5xx, 408, 429, timeouts, connection failures).
An upstream ``Retry-After`` stretches the wait, up to ``max_delay``.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import anyio

from imgcdn.errors import ImageURLError, UpstreamError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently the proxy re-fetches a source.

    Attempt ``n`` (0-based) waits ``initial_delay * backoff_factor**n``,
    capped at ``max_delay``. With ``jitter`` the wait is drawn from the
    upper half of that value.
    """

    max_retries: int = 2
    initial_delay: float = 0.2
    max_delay: float = 5.0
    backoff_factor: float = 2.0
    jitter: bool = True

    def compute_delay(self, attempt: int) -> float:
        base = min(self.initial_delay * self.backoff_factor**attempt, self.max_delay)
        if not self.jitter:
            return base
        return random.uniform(base / 2, base)  # noqa: S311


def _wait_for(error: ImageURLError, attempt: int, policy: RetryPolicy) -> float:
    delay = policy.compute_delay(attempt)
    if isinstance(error, UpstreamError) and error.retry_after is not None:
        delay = min(max(delay, error.retry_after), policy.max_delay)
    return delay


async def retry_with_policy(fn: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    """Await ``fn()``, calling it again after retryable failures.

    Raises:
        ImageURLError: The last error, once it is not retryable or the
            policy has no retries left.
        ValueError: If ``policy.max_retries`` is negative.
    """
    if policy.max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {policy.max_retries}")

    attempt = 0
    while True:
        try:
            return await fn()
        except ImageURLError as exc:
            if not exc.retryable or attempt == policy.max_retries:
                raise
            delay = _wait_for(exc, attempt, policy)
            attempt += 1
            logger.warning(
                "Source fetch failed (%s); retry %d of %d in %.2fs",
                exc,
                attempt,
                policy.max_retries,
                delay,
            )
            await anyio.sleep(delay)
