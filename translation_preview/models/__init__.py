"""Data models for translation requests."""

from .translation import HeadingInfo, RequestState, TranslationOutcome, TranslationUpdate

__all__ = ["HeadingInfo", "RequestState", "TranslationOutcome", "TranslationUpdate"]
