"""Live translation provider for an OpenAI-compatible chat completions API.

The provider talks to the FRIDAY gateway (or any OpenAI-compatible endpoint)
through the ``openai`` SDK and streams the translation chunk by chunk.

TLS verification is configured per provider instance by handing the SDK its
own ``httpx.AsyncClient``; skipping verification for one provider never
affects other HTTPS clients in the process.
"""
from __future__ import annotations

import asyncio
import logging
import ssl
import uuid
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..config.settings import ENV_PREFIX, TranslationSettings
from ..errors import ErrorKind, TranslationError
from ..utils.retry import RetryConfig, RetryExhaustedError, retry_async
from .base import BaseTranslationProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional translator. Translate the following English text to Chinese. "
    "Maintain the original formatting, structure, and markdown syntax. "
    "Only return the translated content without any additional comments or explanations."
)
TEMPERATURE = 0.3
MAX_TOKENS = 8000
TRACE_HEADER = "M-TraceId"

# Substrings that identify certificate validation failures in error messages
_TLS_MARKERS = (
    "certificate verify failed",
    "unable to get issuer certificate",
    "self signed certificate",
    "self-signed certificate",
    "certificate_verify_failed",
)


def _exception_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield the error and its causes/contexts, outermost first."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _is_tls_error(error: BaseException) -> bool:
    for item in _exception_chain(error):
        if isinstance(item, ssl.SSLCertVerificationError):
            return True
        if any(marker in str(item).lower() for marker in _TLS_MARKERS):
            return True
    return False


def _is_timeout(error: BaseException) -> bool:
    return any(
        isinstance(item, (openai.APITimeoutError, httpx.TimeoutException, asyncio.TimeoutError))
        for item in _exception_chain(error)
    )


class OpenAICompatibleProvider(BaseTranslationProvider):
    """Streams English to Chinese translations from an OpenAI-compatible backend."""

    def __init__(
        self,
        settings: TranslationSettings,
        retry_config: Optional[RetryConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize the provider.

        Args:
            settings: Backend settings (API key, base URL, model, TLS, timeouts)
            retry_config: Retry policy for opening the stream. Defaults to
                ``settings.max_retries`` retries on connection errors and
                retriable HTTP statuses (408, 429, 5xx).
            client: Pre-built SDK client, mainly for tests. If None, one is
                created lazily on first use.
        """
        super().__init__(
            retry_config
            or RetryConfig(
                max_attempts=settings.max_retries + 1,
                base_delay=1.0,
                max_delay=10.0,
                retriable_exceptions=(openai.APIConnectionError,),
            )
        )
        self._client: Optional[AsyncOpenAI] = client
        self._owns_client = client is None
        self._http_client: Optional[httpx.AsyncClient] = None
        self._load_configuration(settings)

    def _load_configuration(self, settings: TranslationSettings) -> None:
        self.settings = settings
        self.api_key = settings.get_api_key() or ""
        self.base_url = settings.base_url
        self.default_model = settings.model

        logger.info(
            f"FRIDAY API configuration: base_url={self.base_url}, model={self.default_model}, "
            f"api_key={'configured' if self.api_key else 'missing'}, "
            f"skip_ssl_verification={settings.skip_ssl_verification}"
        )
        if not self.api_key:
            logger.warning("FRIDAY API key not configured. Live translation will not work.")

    @property
    def client(self) -> AsyncOpenAI:
        """Get or lazily create the SDK client."""
        if self._client is None:
            self._http_client = httpx.AsyncClient(
                verify=not self.settings.skip_ssl_verification,
                timeout=httpx.Timeout(self.settings.request_timeout),
            )
            if self.settings.skip_ssl_verification:
                logger.warning(f"TLS certificate verification disabled for {self.base_url}")
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.settings.request_timeout,
                # Retries are owned by retry_async around stream opening
                max_retries=0,
                http_client=self._http_client,
            )
            self._owns_client = True
        return self._client

    def is_available(self) -> bool:
        return bool(self.api_key and self.base_url)

    def get_default_model(self) -> str:
        return self.default_model

    def get_provider_name(self) -> str:
        return "FRIDAY API"

    def build_messages(self, text: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": text},
        ]

    async def _open_stream(self, text: str, model: str) -> Any:
        """Open a streaming completion, retrying transient failures."""

        @retry_async(config=self.get_retry_config())
        async def _create_with_retry() -> Any:
            return await self.client.chat.completions.create(
                model=model,
                messages=self.build_messages(text),
                stream=True,
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
                extra_headers={TRACE_HEADER: str(uuid.uuid4())},
                timeout=self.settings.stream_timeout,
            )

        return await _create_with_retry()

    async def translate(self, text: str, model: Optional[str] = None) -> AsyncIterator[str]:
        if not self.is_available():
            raise TranslationError(
                "FRIDAY API is not configured. Please set your API key "
                f"({ENV_PREFIX}API_KEY) in the environment or .env file.",
                kind=ErrorKind.CONFIGURATION,
            )

        model_to_use = model or self.default_model
        logger.debug(f"Requesting translation of {len(text)} chars with model {model_to_use}")

        chunk_count = 0
        total_chars = 0
        try:
            stream = await self._open_stream(text, model_to_use)
            try:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    choice = chunk.choices[0]
                    content = choice.delta.content if choice.delta is not None else None
                    if content:
                        chunk_count += 1
                        total_chars += len(content)
                        yield content
                    if choice.finish_reason:
                        logger.debug(f"Stream ended with reason: {choice.finish_reason}")
                        break
            finally:
                await stream.close()
        except TranslationError:
            raise
        except Exception as e:
            error = self.classify_error(e)
            logger.error(f"FRIDAY API request failed ({error.kind.value}): {error}")
            raise error from e

        logger.debug(f"Stream complete: {chunk_count} chunks, {total_chars} chars")

    def classify_error(self, error: BaseException) -> TranslationError:
        """Map a backend failure onto a user-readable TranslationError."""
        if isinstance(error, TranslationError):
            return error
        if isinstance(error, RetryExhaustedError):
            error = error.last_exception

        status = getattr(error, "status_code", None)

        if _is_timeout(error):
            return TranslationError(
                "Translation request timed out. Please try again.",
                kind=ErrorKind.TIMEOUT,
                cause=error,
            )
        if _is_tls_error(error):
            return TranslationError(
                "SSL certificate error. Try enabling skip SSL verification "
                f"({ENV_PREFIX}SKIP_SSL_VERIFICATION=true) or contact your network administrator.",
                kind=ErrorKind.TLS,
                cause=error,
            )
        if isinstance(error, openai.AuthenticationError) or status == 401:
            return TranslationError(
                "Invalid API key. Please check your FRIDAY API configuration.",
                kind=ErrorKind.AUTHENTICATION,
                code="401",
                cause=error,
            )
        if isinstance(error, openai.RateLimitError) or status == 429:
            return TranslationError(
                "Rate limit exceeded. Please try again later.",
                kind=ErrorKind.RATE_LIMIT,
                code="429",
                cause=error,
            )
        if isinstance(error, (openai.APIConnectionError, httpx.ConnectError, ConnectionError)):
            return TranslationError(
                f"Network error: Cannot connect to {self.base_url}. "
                "Please check the URL and your network connection.",
                kind=ErrorKind.NETWORK,
                cause=error,
            )
        if isinstance(error, openai.APIStatusError):
            return TranslationError(
                f"Translation failed: backend returned HTTP {error.status_code}: {error.message}",
                kind=ErrorKind.BACKEND,
                code=str(error.status_code),
                cause=error,
            )
        return TranslationError(f"Translation failed: {error}", kind=ErrorKind.UNKNOWN, cause=error)

    async def test_connection(self) -> bool:
        """Translate a short test text and report whether any chunk arrived."""
        result = await self.health_check_async()
        if not result["healthy"]:
            logger.error(f"Connection test failed: {result['details'].get('error', result['status'])}")
        return bool(result["healthy"])

    async def update_configuration(self, settings: TranslationSettings) -> None:
        """Reload settings, dropping the current client so the next request rebuilds it."""
        await self.aclose()
        self._load_configuration(settings)

    async def aclose(self) -> None:
        """Close the SDK client and its transport if this provider created them."""
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
