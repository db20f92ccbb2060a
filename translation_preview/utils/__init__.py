"""Shared utilities: logging setup and retry helpers."""

from .logging_factory import LoggingFactory
from .retry import RetryConfig, RetryExhaustedError, calculate_delay, retry_async

__all__ = [
    "LoggingFactory",
    "RetryConfig",
    "RetryExhaustedError",
    "calculate_delay",
    "retry_async",
]
