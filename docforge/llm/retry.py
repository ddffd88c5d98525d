"""Exponential backoff around gated service calls."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .gate import RateLimitGate, Sleep
from .runner import RateLimitedError, TransientServiceError
from ..logging import get_logger

T = TypeVar("T")

logger = get_logger("retry")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempt budget with doubling, capped delays."""

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Delay after the ``attempt``-th failure (1-based): base, 2*base, 4*base, ..."""
        return min(self.base_delay * (2 ** max(attempt - 1, 0)), self.max_delay)


async def call_with_backoff(
    call: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    gate: RateLimitGate,
    sleep: Sleep = asyncio.sleep,
    on_retry: Optional[Callable[[int, float, TransientServiceError], None]] = None,
) -> T:
    """Run ``call`` behind ``gate``, retrying transient failures.

    Every attempt passes through the gate again. Non-transient errors
    propagate immediately; once the attempt budget is spent the last
    transient error is re-raised.
    """

    attempt = 0
    while True:
        attempt += 1
        await gate.wait()
        try:
            return await call()
        except TransientServiceError as exc:
            if attempt >= policy.max_attempts:
                logger.debug("Giving up after %d attempts: %s", attempt, exc)
                raise
            delay = policy.delay_for(attempt)
            if isinstance(exc, RateLimitedError) and exc.retry_after is not None:
                delay = min(max(delay, exc.retry_after), policy.max_delay)
            logger.debug(
                "Retry %d/%d in %.1fs after: %s", attempt, policy.max_attempts, delay, exc
            )
            if on_retry is not None:
                on_retry(attempt, delay, exc)
            await sleep(delay)


__all__ = ["RetryPolicy", "call_with_backoff"]
