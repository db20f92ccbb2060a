"""Data models for translation requests and their delivered snapshots."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RequestState(Enum):
    """Lifecycle of one orchestrated translation request."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    HIT_DELIVERED = "hit_delivered"  # terminal
    STREAMING = "streaming"
    COMMITTED = "committed"  # terminal
    FAILED = "failed"  # terminal

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.HIT_DELIVERED, RequestState.COMMITTED, RequestState.FAILED)


@dataclass(frozen=True)
class TranslationUpdate:
    """Snapshot of the translation delivered to the consumer.

    ``text`` is always the whole accumulated translation so far, never a
    delta, so a consumer can render the latest snapshot as-is.
    """

    text: str
    is_streaming: bool

    def to_message(self) -> Dict[str, Any]:
        """Render as the preview surface's update message."""
        return {
            "command": "updateTranslation",
            "payload": {"text": self.text, "isStreaming": self.is_streaming},
        }


@dataclass
class TranslationOutcome:
    """Result of one orchestrated translation request.

    Attributes:
        state: Terminal state reached
        text: Final translated text, None when the request failed
        model: Model the request was made with
        from_cache: Whether the text was served from the cache
        chunk_count: Number of chunks received from the provider
    """

    state: RequestState
    text: Optional[str]
    model: str
    from_cache: bool = False
    chunk_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "model": self.model,
            "from_cache": self.from_cache,
            "chunk_count": self.chunk_count,
            "length": len(self.text) if self.text is not None else 0,
        }


@dataclass(frozen=True)
class HeadingInfo:
    """A Markdown heading that can be translated as its own section.

    Attributes:
        line: 0-based line number
        level: Number of leading ``#`` characters
        title: Heading text without the markers
    """

    line: int
    level: int
    title: str
