"""Translation services: orchestration, preview surface and document helpers."""

from .documents import (
    extract_section,
    find_translatable_headings,
    read_document,
    section_document_id,
)
from .orchestrator import TranslationOrchestrator, is_poisoned_hit
from .preview import TranslationPreview

__all__ = [
    "TranslationOrchestrator",
    "TranslationPreview",
    "extract_section",
    "find_translatable_headings",
    "is_poisoned_hit",
    "read_document",
    "section_document_id",
]
