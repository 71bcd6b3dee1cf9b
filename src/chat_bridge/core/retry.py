"""core.retry

Reusable retry utilities with exponential back-off + optional jitter.
Transports wrap their blocking provider call with `with_retry`; plugins never
retry on their own.
"""

from __future__ import annotations

import functools
import logging
import secrets
import time
from typing import TYPE_CHECKING, NoReturn, ParamSpec, TypeVar

from pydantic import BaseModel, Field

from chat_bridge.core.exceptions import (
    GenerationTimeoutError,
    ProviderConnectionError,
    ProviderError,
    RateLimitExceededError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

P = ParamSpec('P')
T = TypeVar('T')

logger = logging.getLogger(__name__)


class RetryStrategy(BaseModel):
    """Configuration for exponential back-off retry with optional jitter."""

    max_attempts: int = Field(default=3, ge=1, description='Total attempts including the first call')
    base_backoff_sec: float = Field(default=1.0, ge=0.0, description='Initial delay before first retry (seconds)')
    max_backoff_sec: float = Field(default=30.0, ge=0.0, description='Upper bound for any sleep interval')
    jitter: bool = Field(default=True, description='Add random jitter (0-1s) to each interval')

    model_config = {
        'frozen': True,
    }

    def compute_delay(self, attempt_number: int) -> float:
        """Calculate sleep duration for the given attempt number (1-indexed)."""
        delay = min(self.base_backoff_sec * (2 ** (attempt_number - 1)), self.max_backoff_sec)

        if self.jitter:
            # Add random value between 0 and 1
            delay += secrets.randbelow(101) / 100

        return delay


#: Strategy that calls the provider exactly once.
NO_RETRY = RetryStrategy(max_attempts=1, base_backoff_sec=0.0, jitter=False)


def with_retry(  # noqa: C901
    strategy: RetryStrategy | None = None,
    retry_on: tuple[type[Exception], ...] | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry decorator that retries a function according to the specified strategy.

    Parameters
    ----------
    strategy
        Retry policy. Defaults to RetryStrategy() if None.
    retry_on
        Exception types that trigger a retry. Defaults to
        (RateLimitExceededError, GenerationTimeoutError, ConnectionError).

    When attempts run out the last provider error is re-raised unchanged so its
    category survives; any other retried exception becomes a
    GenerationTimeoutError. A None result is retried like an error.

    """
    retry_strategy = strategy or RetryStrategy()
    retry_exceptions = retry_on or (RateLimitExceededError, GenerationTimeoutError, ProviderConnectionError, ConnectionError)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            def raise_timeout(message: str) -> NoReturn:
                raise GenerationTimeoutError(message)

            for attempt_number in range(1, retry_strategy.max_attempts + 1):
                try:
                    result = func(*args, **kwargs)
                except retry_exceptions as exc:
                    if attempt_number == retry_strategy.max_attempts:
                        if isinstance(exc, ProviderError):
                            raise
                        raise GenerationTimeoutError('Retry limit exceeded') from exc
                    delay = retry_strategy.compute_delay(attempt_number)
                    logger.warning('Attempt %d failed (%s), retrying in %.2fs', attempt_number, exc, delay)
                    time.sleep(delay)
                    continue
                else:
                    if result is None:
                        if attempt_number == retry_strategy.max_attempts:
                            raise_timeout('Retry limit exceeded due to None response')
                        time.sleep(retry_strategy.compute_delay(attempt_number))
                        continue
                    return result

            # This is technically unreachable, but added for explicit return
            return raise_timeout('Retry limit exceeded (sync)')

        return wrapper

    return decorator
