"""Configuration management for the translation preview."""

from .settings import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    ENV_PREFIX,
    ConfigurationError,
    TranslationSettings,
    build_settings,
    get_settings,
    load_environment,
    reset_settings,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "ENV_PREFIX",
    "ConfigurationError",
    "TranslationSettings",
    "build_settings",
    "get_settings",
    "load_environment",
    "reset_settings",
]
