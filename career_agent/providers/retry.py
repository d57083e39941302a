"""Retries for model calls.

A turn makes at most one model call per node, so a single flaky response
would otherwise cost the user the whole turn. Transient failures and rate
limits are retried with capped exponential backoff plus jitter; everything
else propagates on the first attempt.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from career_agent.providers.errors import RateLimitError, TransientError

__all__ = ["RETRYABLE_ERRORS", "backoff_delay", "with_retries"]

if TYPE_CHECKING:
    from career_agent.providers.config import ProviderConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (TransientError, RateLimitError)

# Jitter is up to this fraction of the exponential delay
_JITTER_RATIO = 0.1


def backoff_delay(attempt: int, error: Exception, config: "ProviderConfig") -> float:
    """Seconds to wait before retrying after ``attempt`` (0-based) failed.

    A rate limit that names its own retry-after wins over the computed
    backoff. Otherwise the delay doubles per attempt and is capped at
    ``retry_max_delay_ms``.
    """
    if isinstance(error, RateLimitError) and error.retry_after_seconds:
        return error.retry_after_seconds

    exponential_ms = config.retry_base_delay_ms * (2**attempt)
    jitter_ms = random.uniform(0, exponential_ms * _JITTER_RATIO)
    return min(exponential_ms + jitter_ms, config.retry_max_delay_ms) / 1000


async def with_retries(
    func: Callable[[], Awaitable[T]],
    config: "ProviderConfig",
    *,
    operation: str = "llm_call",
    retryable_errors: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
) -> T:
    """Await ``func`` until it succeeds or the retry budget is spent.

    Args:
        func: Zero-argument coroutine function performing one attempt.
        config: Provider configuration carrying the retry budget and delays.
        operation: Label for log lines, e.g. "openai:ats_assessment".
        retryable_errors: Error types worth another attempt.

    Returns:
        The first successful result.

    Raises:
        TransientError: When the last attempt failed transiently.
        RateLimitError: When the last attempt was rate limited.
        ProviderError: Any non-retryable error, immediately.
    """
    attempts = config.max_retries + 1
    attempt = 0
    while True:
        try:
            return await func()
        except retryable_errors as e:
            if attempt + 1 >= attempts:
                logger.warning(
                    "%s failed after %d attempt(s): %s", operation, attempts, e
                )
                raise
            delay = backoff_delay(attempt, e, config)
            logger.warning(
                "%s attempt %d/%d failed (%s); retrying in %.2fs",
                operation,
                attempt + 1,
                attempts,
                type(e).__name__,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
