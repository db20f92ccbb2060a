"""Streaming Markdown translation preview with a persistent translation cache."""

__version__ = "1.0.0"

from .cache import SqliteStore, InMemoryStore, TranslationCache
from .errors import ErrorKind, TranslationError
from .models import TranslationUpdate
from .providers import create_translation_provider
from .services import TranslationOrchestrator, TranslationPreview

__all__ = [
    "__version__",
    "ErrorKind",
    "InMemoryStore",
    "SqliteStore",
    "TranslationCache",
    "TranslationError",
    "TranslationOrchestrator",
    "TranslationPreview",
    "TranslationUpdate",
    "create_translation_provider",
]
