"""Factory for creating translation providers.

Providers are registered by name. ``create_default`` picks the live backend
when it is configured and otherwise falls back to the offline stand-in, so a
preview always has something to stream.

Example:
    >>> provider = TranslationProviderFactory.create_default(get_settings())
    >>> async for chunk in provider.translate("# Hello"):
    ...     print(chunk, end="")
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..config.settings import TranslationSettings
from .base import BaseTranslationProvider
from .mock import MockTranslationProvider
from .openai_compatible import OpenAICompatibleProvider

logger = logging.getLogger(__name__)

ProviderBuilder = Callable[[TranslationSettings], BaseTranslationProvider]

LIVE_PROVIDER = "friday"
MOCK_PROVIDER = "mock"


class TranslationProviderFactory:
    """Registry-backed factory for translation providers.

    All methods are class methods; the registry is shared process-wide.
    Registration should happen at import time.
    """

    # Registry: provider name -> builder taking settings
    _providers: Dict[str, ProviderBuilder] = {}

    @classmethod
    def register_provider(cls, name: str, builder: ProviderBuilder) -> None:
        """Register a provider builder under ``name``."""
        cls._providers[name] = builder
        logger.debug(f"Registered translation provider: {name}")

    @classmethod
    def get_available_providers(cls) -> List[str]:
        """Get registered provider names."""
        return list(cls._providers.keys())

    @classmethod
    def create_provider(cls, name: str, settings: TranslationSettings) -> BaseTranslationProvider:
        """Create a registered provider.

        Raises:
            ValueError: If ``name`` is not registered
        """
        if name not in cls._providers:
            available = ", ".join(cls.get_available_providers())
            raise ValueError(f"Unknown provider '{name}'. Available providers: {available}")

        provider = cls._providers[name](settings)
        logger.info(f"Created translation provider: {provider.get_provider_name()}")
        return provider

    @classmethod
    def create_default(
        cls, settings: TranslationSettings, prefer: Optional[str] = None
    ) -> BaseTranslationProvider:
        """Create the live provider if it is available, otherwise the stand-in.

        Args:
            settings: Translation settings
            prefer: Provider name to try first (defaults to the live provider)
        """
        preferred = prefer or LIVE_PROVIDER
        if preferred in cls._providers:
            provider = cls.create_provider(preferred, settings)
            if provider.is_available():
                return provider
            logger.warning(
                f"Provider '{preferred}' is not available, falling back to '{MOCK_PROVIDER}'"
            )
        else:
            logger.warning(f"Provider '{preferred}' is not registered, using '{MOCK_PROVIDER}'")

        return cls.create_provider(MOCK_PROVIDER, settings)

    @classmethod
    def get_provider_status(cls, settings: TranslationSettings) -> Dict[str, Dict[str, Any]]:
        """Report availability and default model for every registered provider."""
        status: Dict[str, Dict[str, Any]] = {}
        for name in cls.get_available_providers():
            try:
                provider = cls._providers[name](settings)
                status[name] = {
                    "available": provider.is_available(),
                    "name": provider.get_provider_name(),
                    "default_model": provider.get_default_model(),
                }
            except Exception as e:
                logger.warning(f"Could not inspect provider '{name}': {e}")
                status[name] = {"available": False, "error": str(e)}
        return status


def _build_mock(settings: TranslationSettings) -> BaseTranslationProvider:
    return MockTranslationProvider(chunk_delay=settings.mock_chunk_delay)


TranslationProviderFactory.register_provider(LIVE_PROVIDER, OpenAICompatibleProvider)
TranslationProviderFactory.register_provider(MOCK_PROVIDER, _build_mock)


def create_translation_provider(settings: TranslationSettings) -> BaseTranslationProvider:
    """Convenience wrapper around ``TranslationProviderFactory.create_default``."""
    return TranslationProviderFactory.create_default(settings)
