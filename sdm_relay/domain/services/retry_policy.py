"""
Retry Policy Service

Architectural Intent:
- Wraps a fallible remote call sequence with bounded re-attempts
- Reports exhaustion uniformly with the attempt count and last error
- Attempts run sequentially, never in parallel

Design Decisions:
- Defaults retry every error with no delay between attempts
- Backoff is a plain function of the attempt number that just failed
- An optional classifier lets stricter deployments stop on terminal errors
- The sleep function is injectable so tests never wait on the clock
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Callable[[int], float]
Classifier = Callable[[Exception], bool]


class RetryExhausted(Exception):
    """Raised when no attempt of an operation succeeded."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(
            f"gave up after {attempts} attempt(s): {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


def no_backoff(attempt: int) -> float:
    return 0.0


def exponential_backoff(base: float, maximum: float) -> Backoff:
    """Delay of base * 2**(attempt-1) seconds, capped at maximum."""
    if base < 0 or maximum < 0:
        raise ValueError("backoff durations cannot be negative")

    def _delay(attempt: int) -> float:
        return min(maximum, base * (2 ** (attempt - 1)))

    return _delay


def retry_everything(error: Exception) -> bool:
    return True


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int,
        backoff: Backoff = no_backoff,
        is_retryable: Classifier = retry_everything,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.is_retryable = is_retryable
        self._sleep = sleep or asyncio.sleep

    async def attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
    ) -> tuple[T, int]:
        """Run operation until it succeeds.

        Returns the result together with the number of invocations it took.
        Raises RetryExhausted once max_attempts invocations have failed, or
        as soon as the classifier rejects an error.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            logger.info(
                "Attempting to %s (%d of %d)", description, attempt, self.max_attempts
            )
            try:
                return await operation(), attempt
            except Exception as e:
                last_error = e
                logger.warning(
                    "Attempt %d of %d to %s failed: %s",
                    attempt,
                    self.max_attempts,
                    description,
                    e,
                )
                if not self.is_retryable(e):
                    raise RetryExhausted(attempt, e) from e
                if attempt < self.max_attempts:
                    delay = self.backoff(attempt)
                    if delay > 0:
                        await self._sleep(delay)

        assert last_error is not None
        raise RetryExhausted(self.max_attempts, last_error) from last_error
