#!/usr/bin/env python3
"""Retry policy for phpIPAM API calls.

The policy is deliberately simple: a failed attempt is repeated only when the
error says it is retryable and fewer than ``max_retries`` retries have been
made. The wait before retry ``n`` (counting from 0) is
``base_delay * 2 ** n``. There is no jitter and no cap; the attempt count is
the only ceiling, so the worst case wait per logical call is
``base_delay * (2 ** max_retries - 1)``.

Example:
    policy = RetryPolicy(max_retries=3, base_delay=1.0)
    result = await retry_async(client._send, "GET", "/sections/", policy=policy)
    # Up to 4 attempts, waiting 1s, 2s, 4s between them

Author: phpIPAM MCP Team
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .exceptions import PhpIpamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attributes:
        max_retries: Retries allowed after the first attempt
        base_delay: Seconds to wait before the first retry
    """
    max_retries: int = 3
    base_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (0-based)."""
        return self.base_delay * (2 ** attempt)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        return (
            isinstance(error, PhpIpamError)
            and error.retryable
            and attempt < self.max_retries
        )


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    policy: RetryPolicy,
    on_retry: Optional[Callable[[PhpIpamError, int, float], None]] = None,
    **kwargs,
) -> T:
    """Call ``func`` until it succeeds or the policy gives up.

    Only PhpIpamError instances are considered; anything else propagates
    untouched on the first occurrence.

    Args:
        func: Async function performing one attempt
        *args: Arguments to pass to func
        policy: RetryPolicy deciding whether and how long to wait
        on_retry: Optional callback(error, attempt, delay) before each wait
        **kwargs: Keyword arguments to pass to func

    Returns:
        Result from func
    """
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)

        except PhpIpamError as e:
            if not policy.should_retry(e, attempt):
                if e.retryable and attempt:
                    logger.error(f"All {attempt + 1} attempts failed. Last error: {e}")
                raise

            delay = policy.delay_for(attempt)
            if on_retry:
                on_retry(e, attempt, delay)
            logger.warning(
                f"Attempt {attempt + 1}/{policy.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            attempt += 1
