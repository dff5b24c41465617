"""Exponential backoff retry with a per-attempt timeout for upstream calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import get_config
from .errors import FailureKind, classify_failure, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryFailed(Exception):
    """Terminal failure after zero or more retries.

    Attributes:
        kind: Classification of the last error.
        attempts: Number of attempts made (including the first).
        last_error: The last exception observed.
    """

    def __init__(self, kind: FailureKind, attempts: int, last_error: Exception) -> None:
        self.kind = kind
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{kind.value} after {attempts} attempt(s): {last_error}")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number *attempt* (1-based): ``base * 2**attempt``, capped."""
    return min(base_delay * (2 ** attempt), max_delay)


async def with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    *,
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
    timeout: float | None = None,
) -> T:
    """Run *coro_factory* with a timeout per attempt and backoff between attempts.

    Timeouts, network errors and upstream rate limits are retried; every
    other failure class is terminal on first sight. Unset arguments fall
    back to the server config.

    Args:
        coro_factory: Zero-arg callable that returns a fresh awaitable each attempt.
        max_attempts: Total attempts, including the first.
        base_delay: Backoff base in seconds (1.0 → 2s, 4s, 8s...).
        max_delay: Cap on a single backoff delay.
        timeout: Seconds each attempt may run before it counts as a timeout.

    Returns:
        The result of the first successful attempt.

    Raises:
        RetryFailed: On a non-retryable error or when attempts are exhausted.
    """
    cfg = get_config()
    max_attempts = max_attempts or cfg.retry_max_attempts
    base_delay = cfg.retry_base_delay if base_delay is None else base_delay
    max_delay = cfg.retry_max_delay if max_delay is None else max_delay
    timeout = cfg.upstream_timeout_seconds if timeout is None else timeout

    for attempt in range(1, max_attempts + 1):
        try:
            return await asyncio.wait_for(coro_factory(), timeout=timeout)
        except Exception as exc:
            kind = classify_failure(exc)
            if not is_retryable(kind) or attempt == max_attempts:
                raise RetryFailed(kind, attempt, exc) from exc
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Retry %d/%d after %.1fs (%s): %s",
                attempt, max_attempts, delay, kind.value, str(exc) or type(exc).__name__,
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
