"""Abstract base class for translation providers."""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Optional

from ..utils.retry import RetryConfig

logger = logging.getLogger(__name__)


class BaseTranslationProvider(ABC):
    """Abstract base class for all translation providers.

    A provider turns source text into an async stream of translated chunks.
    Providers must raise rather than yield nothing when misconfigured, and
    classify backend failures into ``TranslationError``.
    """

    # Opening a stream is retried on connection failures; once chunks flow
    # nothing is retried.
    DEFAULT_RETRY_CONFIG = RetryConfig(
        max_attempts=2, base_delay=1.0, exponential_base=2, max_delay=10.0, jitter=True
    )

    def __init__(self, retry_config: Optional[RetryConfig] = None):
        self._retry_config = retry_config or self.DEFAULT_RETRY_CONFIG

    @abstractmethod
    def translate(self, text: str, model: Optional[str] = None) -> AsyncIterator[str]:
        """Translate text, yielding chunks of the translation as they arrive.

        Args:
            text: English Markdown text
            model: Model identifier (defaults to ``get_default_model()``)

        Yields:
            Non-empty chunks of translated text

        Raises:
            TranslationError: If the provider is unavailable or the backend fails
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the provider is configured and can serve requests."""

    @abstractmethod
    def get_default_model(self) -> str:
        """Get the model used when a request does not name one."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Human-readable provider name."""

    def get_retry_config(self) -> RetryConfig:
        return self._retry_config

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None

    async def health_check_async(self) -> Dict[str, Any]:
        """Translate a short test text and report whether any chunk arrived.

        Returns:
            Dictionary with ``healthy``, ``status``, ``response_time_ms`` and ``details``
        """
        start = time.perf_counter()
        details: Dict[str, Any] = {"model": self.get_default_model()}

        if not self.is_available():
            return {
                "healthy": False,
                "status": "not_configured",
                "response_time_ms": 0.0,
                "details": details,
            }

        try:
            async for _chunk in self.translate("Hello", self.get_default_model()):
                break
            else:
                return {
                    "healthy": False,
                    "status": "empty_response",
                    "response_time_ms": (time.perf_counter() - start) * 1000,
                    "details": details,
                }
        except Exception as e:
            logger.warning(f"Health check failed for {self.get_provider_name()}: {e}")
            details["error"] = str(e)
            return {
                "healthy": False,
                "status": "error",
                "response_time_ms": (time.perf_counter() - start) * 1000,
                "details": details,
            }

        return {
            "healthy": True,
            "status": "ok",
            "response_time_ms": (time.perf_counter() - start) * 1000,
            "details": details,
        }
