"""Translation providers: live OpenAI-compatible backend and offline stand-in."""

from .base import BaseTranslationProvider
from .factory import TranslationProviderFactory, create_translation_provider
from .mock import MOCK_MODEL, MOCK_TRANSLATION_PREFIX, MockTranslationProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "MOCK_MODEL",
    "MOCK_TRANSLATION_PREFIX",
    "BaseTranslationProvider",
    "MockTranslationProvider",
    "OpenAICompatibleProvider",
    "TranslationProviderFactory",
    "create_translation_provider",
]
