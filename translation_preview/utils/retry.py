"""Retry utilities with exponential backoff for opening backend streams."""
from __future__ import annotations

import asyncio
import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

AsyncF = TypeVar("AsyncF", bound=Callable[..., Any])

# HTTP statuses worth another attempt; other 4xx are final
RETRIABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the initial one)
        base_delay: Base delay in seconds before the first retry
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to add random jitter to delays
        retriable_exceptions: Exception types that should trigger retries
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    retriable_exceptions: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (ConnectionError, TimeoutError)
    )

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")
        if self.max_attempts > 10:
            raise ValueError("max_attempts should not exceed 10 for practical purposes")

    def calculate_backoff_delay(self, attempt: int) -> float:
        """Delay before the given attempt (0-based)."""
        return calculate_delay(
            attempt, self.base_delay, self.max_delay, self.exponential_base, self.jitter
        )


class RetryExhaustedError(Exception):
    """Raised when all retry attempts have been exhausted.

    Attributes:
        attempts: Number of attempts made
        last_exception: The final exception that caused the retry to fail
        total_delay: Total time spent in delays
    """

    def __init__(self, attempts: int, last_exception: BaseException, total_delay: float) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        self.total_delay = total_delay
        super().__init__(
            f"Retry exhausted after {attempts} attempts over {total_delay:.2f}s. "
            f"Last error: {last_exception}"
        )


def calculate_delay(
    attempt: int, base_delay: float, max_delay: float, exponential_base: float, jitter: bool = True
) -> float:
    """Calculate delay for a retry attempt with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-based, attempt 0 never waits)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Whether to add ±25% random jitter

    Returns:
        Delay in seconds, always between 0 and max_delay
    """
    if attempt == 0:
        return 0.0

    backoff = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)

    if jitter:
        jitter_range = backoff * 0.25
        backoff += random.uniform(-jitter_range, jitter_range)

    return max(0.0, min(backoff, max_delay))


def _status_code_of(exception: BaseException) -> Optional[int]:
    status = getattr(exception, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exception, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_retriable_exception(
    exception: BaseException, retriable_exceptions: Tuple[Type[BaseException], ...]
) -> bool:
    """Check if an exception should trigger a retry.

    HTTP status codes, when the exception carries one, take precedence over
    the exception type.
    """
    status_code = _status_code_of(exception)
    if status_code is not None:
        if status_code in RETRIABLE_STATUS_CODES:
            return True
        if 400 <= status_code < 500:
            return False

    return isinstance(exception, retriable_exceptions)


def retry_async(config: Optional[RetryConfig] = None) -> Callable[[AsyncF], AsyncF]:
    """Decorator for coroutine functions with retry logic.

    Non-retriable exceptions are re-raised unchanged. When every attempt
    fails with a retriable exception, ``RetryExhaustedError`` is raised.

    Example:
        @retry_async(RetryConfig(max_attempts=3, base_delay=0.5))
        async def open_stream():
            ...
    """
    retry_config = config or RetryConfig()

    def decorator(func: AsyncF) -> AsyncF:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exception: Optional[BaseException] = None
            total_delay = 0.0

            for attempt in range(retry_config.max_attempts):
                if attempt > 0:
                    logger.info(
                        f"Retry attempt {attempt + 1}/{retry_config.max_attempts} for {func.__name__}"
                    )
                try:
                    return await func(*args, **kwargs)

                except Exception as e:
                    last_exception = e

                    if not is_retriable_exception(e, retry_config.retriable_exceptions):
                        logger.debug(f"Non-retriable exception in {func.__name__}: {e}")
                        raise

                    if attempt + 1 >= retry_config.max_attempts:
                        logger.error(f"All retry attempts exhausted for {func.__name__}: {e}")
                        break

                    delay = retry_config.calculate_backoff_delay(attempt + 1)
                    logger.warning(
                        f"Attempt {attempt + 1}/{retry_config.max_attempts} failed for "
                        f"{func.__name__}: {e}. Retrying in {delay:.2f}s..."
                    )
                    await asyncio.sleep(delay)
                    total_delay += delay

            raise RetryExhaustedError(
                retry_config.max_attempts, last_exception or Exception("Unknown error"), total_delay
            )

        return wrapper  # type: ignore

    return decorator
