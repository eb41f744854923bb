"""Bounded exponential backoff for fallible async calls."""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

from fii_tracker.core.exceptions import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """
    Retry an async operation on transient failures.

    Only TransientError (5xx / "overloaded") is retried; the delay before
    attempt n+1 is initial_delay * multiplier ** (n - 1). Any other exception,
    AuthError and ValidationError included, propagates on the first occurrence.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        multiplier: float = 2.0,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return self.initial_delay * self.multiplier ** (attempt - 1)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except TransientError as exc:
                if attempt >= self.max_attempts:
                    logger.error(
                        "%s failed after %d attempts: %s", exc.source, attempt, exc.message
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s busy, retrying in %.2fs (attempt %d/%d)",
                    exc.source,
                    delay,
                    attempt,
                    self.max_attempts,
                )
                await self._sleep(delay)


def with_retry(policy: RetryPolicy):
    """Decorator form of RetryPolicy.run for async callables."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await policy.run(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
