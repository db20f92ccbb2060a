"""Translation settings with validation.

Settings are read from ``SPECKIT_TRANSLATION_*`` environment variables
(optionally seeded from a ``.env`` file) using Pydantic Settings:
- API key masking via SecretStr
- Validation with clear error messages
- Per-instance TLS verification switch for the live backend
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPECKIT_TRANSLATION_"
DEFAULT_BASE_URL = "https://friday-api.example.com"
DEFAULT_MODEL = "LongCat-Flash-Chat-2512"
DEFAULT_CACHE_DIR = Path.home() / ".translation_preview" / "cache"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


class TranslationSettings(BaseSettings):
    """Settings for the live translation backend, cache and logging.

    The API key is wrapped in SecretStr to prevent accidental logging or
    serialization. Access it via ``.get_secret_value()`` when needed.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    # Backend (never log the key)
    api_key: Optional[SecretStr] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    skip_ssl_verification: bool = False

    # Timeouts in seconds
    request_timeout: float = Field(30.0, gt=0)
    stream_timeout: float = Field(120.0, gt=0)
    max_retries: int = Field(2, ge=0, le=9)

    # Cache
    cache_dir: Path = Field(default_factory=lambda: DEFAULT_CACHE_DIR)

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    # Offline stand-in
    mock_chunk_delay: float = Field(0.1, ge=0)

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_api_key_is_unset(cls, v: Any) -> Any:
        """Treat an empty API key as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Validate API key format if provided."""
        if v is not None and len(v.get_secret_value()) < 10:
            raise ValueError(
                "API key appears invalid (too short). "
                "Expected a key with minimum 10 characters. "
                "Check your .env file or environment variables."
            )
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @property
    def is_configured(self) -> bool:
        """Whether the live backend has an API key and base URL."""
        return bool(self.api_key and self.base_url)

    def get_api_key(self) -> Optional[str]:
        return self.api_key.get_secret_value() if self.api_key else None

    def describe(self) -> Dict[str, Any]:
        """Redacted summary for display."""
        return {
            "api_key": "configured" if self.api_key else "missing",
            "base_url": self.base_url or "not set",
            "model": self.model or "not set",
            "skip_ssl_verification": self.skip_ssl_verification,
            "request_timeout": self.request_timeout,
            "stream_timeout": self.stream_timeout,
            "cache_dir": str(self.cache_dir),
        }

    def __repr__(self) -> str:
        return (
            f"TranslationSettings(base_url={self.base_url!r}, model={self.model!r}, "
            f"api_key={'***' if self.api_key else None}, "
            f"skip_ssl_verification={self.skip_ssl_verification})"
        )


def load_environment(env_file: Optional[Path] = None) -> Optional[Path]:
    """Load a ``.env`` file into the process environment without overriding it.

    Args:
        env_file: Explicit file to load. If None, searches the current
            directory, its parent and the home directory.

    Returns:
        The file that was loaded, if any
    """
    candidates = [env_file] if env_file else [Path(".env"), Path("../.env"), Path.home() / ".env"]
    for env_path in candidates:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            return env_path
    return None


def build_settings(**overrides: Any) -> TranslationSettings:
    """Create settings, converting validation failures into ConfigurationError."""
    try:
        return TranslationSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}. "
            f"Check the {ENV_PREFIX}* environment variables or your .env file."
        ) from e


_settings: Optional[TranslationSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> TranslationSettings:
    """Get the process-wide settings, loading them on first use.

    Raises:
        ConfigurationError: If the environment holds invalid values
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                load_environment()
                _settings = build_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    with _settings_lock:
        _settings = None
