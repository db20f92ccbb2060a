"""Error taxonomy for translation requests.

Every failure that reaches a consumer is expressed as a ``TranslationError``
carrying a machine-readable ``ErrorKind`` plus a message that is safe to show
to the user. Providers classify their backend failures into this taxonomy;
the orchestrator wraps anything unclassified as ``ErrorKind.UNKNOWN``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Categories of translation failures."""

    CONFIGURATION = "configuration"  # Missing API key / base URL
    AUTHENTICATION = "authentication"  # HTTP 401
    RATE_LIMIT = "rate_limit"  # HTTP 429
    TIMEOUT = "timeout"
    TLS = "tls"  # Certificate validation failures
    NETWORK = "network"  # DNS / connection refused
    BACKEND = "backend"  # Other HTTP status errors
    PERSISTENCE = "persistence"  # Cache commit failed
    UNKNOWN = "unknown"


class TranslationError(Exception):
    """Raised when a translation request cannot be completed.

    Attributes:
        kind: Classified failure category
        code: Optional backend-specific code (HTTP status, errno name)
        cause: Original exception, if any
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.cause = cause

    @property
    def user_message(self) -> str:
        """Message suitable for display in the preview surface."""
        return str(self)

    @property
    def retriable(self) -> bool:
        """Whether re-issuing the same request may succeed."""
        return self.kind in (ErrorKind.RATE_LIMIT, ErrorKind.TIMEOUT, ErrorKind.NETWORK)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.user_message,
            "retriable": self.retriable,
        }

    @classmethod
    def wrap(cls, error: BaseException) -> "TranslationError":
        """Return ``error`` unchanged if already classified, else wrap it as UNKNOWN."""
        if isinstance(error, TranslationError):
            return error
        return cls(f"Translation failed: {error}", kind=ErrorKind.UNKNOWN, cause=error)
